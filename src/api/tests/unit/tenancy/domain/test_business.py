"""Unit tests for the Business aggregate."""

from datetime import UTC, datetime, timedelta

import pytest

from tenancy.domain import Business, BusinessId, BusinessValidationError

NOW = datetime(2025, 4, 1, 9, 0, tzinfo=UTC)


class TestBusinessId:
    """Tests for BusinessId value object."""

    def test_generate_is_a_valid_ulid(self):
        business_id = BusinessId.generate()

        assert len(business_id.value) == 26
        assert BusinessId.from_string(business_id.value) == business_id

    def test_from_string_rejects_garbage(self):
        with pytest.raises(ValueError):
            BusinessId.from_string("not-a-ulid")

    def test_str(self):
        business_id = BusinessId.generate()

        assert str(business_id) == business_id.value


class TestCreate:
    """Tests for Business.create."""

    def test_defaults(self):
        business = Business.create(owner_id="user-1", name="  Shop A ", now=NOW)

        assert business.name == "Shop A"
        assert business.owner_id == "user-1"
        assert business.currency == "INR"
        assert business.fiscal_year == "april-march"
        assert business.is_active is True
        assert business.is_default is False
        assert business.created_at == business.updated_at == NOW

    def test_profile_fields(self):
        business = Business.create(
            owner_id="user-1",
            name="Shop A",
            gst_number="29ABCDE1234F1Z5",
            currency="USD",
            description=None,
        )

        assert business.gst_number == "29ABCDE1234F1Z5"
        assert business.currency == "USD"
        assert business.description is None

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_name_required(self, name):
        with pytest.raises(BusinessValidationError):
            Business.create(owner_id="user-1", name=name)

    def test_name_length_limit(self):
        with pytest.raises(BusinessValidationError):
            Business.create(owner_id="user-1", name="x" * 256)

    def test_unknown_field_rejected(self):
        with pytest.raises(BusinessValidationError, match="owner_id_override"):
            Business.create(owner_id="user-1", name="Shop", owner_id_override="u2")

    def test_ids_are_unique(self):
        first = Business.create(owner_id="user-1", name="A")
        second = Business.create(owner_id="user-1", name="B")

        assert first.id != second.id


class TestUpdate:
    """Tests for partial updates, ownership and soft deletion."""

    def _business(self) -> Business:
        return Business.create(owner_id="user-1", name="Shop A", email="a@shop.in", now=NOW)

    def test_only_present_keys_change(self):
        business = self._business()

        business.update({"website": "https://shop.in"}, now=NOW + timedelta(minutes=1))

        assert business.website == "https://shop.in"
        assert business.name == "Shop A"
        assert business.email == "a@shop.in"
        assert business.updated_at == NOW + timedelta(minutes=1)

    def test_empty_patch_bumps_updated_at(self):
        business = self._business()

        business.update({}, now=NOW + timedelta(hours=1))

        assert business.updated_at == NOW + timedelta(hours=1)

    def test_explicit_null_clears_optional_field(self):
        business = self._business()

        business.update({"email": None})

        assert business.email is None

    @pytest.mark.parametrize("name", ["", "  ", None])
    def test_empty_name_rejected(self, name):
        business = self._business()

        with pytest.raises(BusinessValidationError):
            business.update({"name": name})

        assert business.name == "Shop A"

    def test_empty_currency_rejected(self):
        with pytest.raises(BusinessValidationError):
            self._business().update({"currency": ""})

    def test_owner_cannot_be_patched(self):
        with pytest.raises(BusinessValidationError):
            self._business().update({"owner_id": "user-2"})

    def test_ownership(self):
        business = self._business()

        assert business.is_owned_by("user-1")
        assert not business.is_owned_by("user-2")

    def test_deactivate(self):
        business = self._business()

        business.deactivate(now=NOW + timedelta(days=1))

        assert business.is_active is False
        assert business.updated_at == NOW + timedelta(days=1)
