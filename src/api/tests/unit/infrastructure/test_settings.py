"""Unit tests for infrastructure settings."""

import pytest
from pydantic import ValidationError

from infrastructure.settings import (
    CookieSettings,
    DatabaseSettings,
    GateSettings,
    IdentitySettings,
    TenancySettings,
)


class TestDatabaseSettingsPoolConfiguration:
    """Tests for connection pool configuration."""

    def test_default_pool_settings(self):
        """Should have sensible pool defaults."""
        settings = DatabaseSettings()
        assert settings.pool_min_connections >= 1
        assert settings.pool_max_connections >= settings.pool_min_connections
        assert settings.pool_max_connections <= 20

    def test_pool_settings_from_fields(self):
        """Should accept pool settings via constructor."""
        settings = DatabaseSettings(pool_min_connections=5, pool_max_connections=15)
        assert settings.pool_min_connections == 5
        assert settings.pool_max_connections == 15

    def test_pool_max_must_be_greater_than_or_equal_to_min(self):
        """Should validate max >= min."""
        with pytest.raises(ValidationError) as exc_info:
            DatabaseSettings(pool_min_connections=10, pool_max_connections=5)

        assert "pool_max_connections" in str(exc_info.value)

    def test_pool_max_equal_to_min_is_valid(self):
        """Should allow max == min."""
        settings = DatabaseSettings(pool_min_connections=5, pool_max_connections=5)
        assert settings.pool_min_connections == 5
        assert settings.pool_max_connections == 5

    def test_pool_min_must_be_positive(self):
        """Pool min connections must be >= 1."""
        with pytest.raises(ValidationError):
            DatabaseSettings(pool_min_connections=0)

    def test_pool_max_respects_upper_limit(self):
        """Pool max should not exceed reasonable limit."""
        with pytest.raises(ValidationError):
            DatabaseSettings(pool_max_connections=101)

    def test_timeouts_must_be_positive(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(statement_timeout_seconds=0)

    def test_application_name_default(self):
        assert DatabaseSettings().application_name == "ledgerdesk-api"

    def test_connection_string_omits_password(self):
        settings = DatabaseSettings(
            host="db", username="app", database="books", password="hunter2"
        )
        assert settings.connection_string == "postgresql://app@db:5432/books"
        assert "hunter2" not in settings.connection_string


class TestIdentitySettings:
    """Tests for identity store settings."""

    def test_defaults(self):
        settings = IdentitySettings()
        assert settings.jwt_audience == "authenticated"
        assert settings.default_country_code == "+91"
        assert settings.federated_providers == ["google"]
        assert settings.refresh_margin_seconds == 60

    def test_country_code_requires_plus_prefix(self):
        with pytest.raises(ValidationError):
            IdentitySettings(default_country_code="91")

    def test_country_code_accepts_other_prefixes(self):
        assert IdentitySettings(default_country_code="+1").default_country_code == "+1"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            IdentitySettings(request_timeout_seconds=0)

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGERDESK_IDENTITY_JWT_SECRET", "s3cret")
        monkeypatch.setenv("LEDGERDESK_IDENTITY_FEDERATED_PROVIDERS", '["google", "github"]')

        settings = IdentitySettings()

        assert settings.jwt_secret.get_secret_value() == "s3cret"
        assert settings.federated_providers == ["google", "github"]


class TestCookieSettings:
    """Tests for credential cookie settings."""

    def test_defaults(self):
        settings = CookieSettings()
        assert settings.access_token_name == "access_token"
        assert settings.refresh_token_name == "refresh_token"
        assert settings.business_name == "current_business_id"
        assert settings.secure is True
        assert settings.samesite == "lax"

    def test_challenge_signing_key_has_no_default(self, monkeypatch):
        monkeypatch.delenv("LEDGERDESK_COOKIE_CHALLENGE_SIGNING_KEY", raising=False)

        assert CookieSettings().challenge_signing_key.get_secret_value() == ""

    def test_rejects_unknown_samesite(self):
        with pytest.raises(ValidationError):
            CookieSettings(samesite="sometimes")


class TestGateSettings:
    """Tests for edge gate route lists."""

    def test_default_protected_prefixes(self):
        settings = GateSettings()
        assert "/dashboard" in settings.protected_prefixes
        assert "/api" in settings.protected_prefixes
        assert "/login" not in settings.protected_prefixes

    def test_default_auth_only_paths_cover_sign_in_endpoints(self):
        paths = GateSettings().auth_only_paths
        assert {"/auth/login", "/auth/signup", "/auth/verify"} <= set(paths)
        assert {"/login", "/signup"} <= set(paths)

    def test_link_endpoints_are_protected(self):
        assert "/auth/link" in GateSettings().protected_prefixes

    def test_rewrite_targets(self):
        settings = GateSettings()
        assert settings.unauthorized_path == "/unauthorized"
        assert settings.authorized_path == "/authorized"

    def test_prefixes_from_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGERDESK_GATE_PROTECTED_PREFIXES", '["/books"]')
        assert GateSettings().protected_prefixes == ["/books"]


class TestTenancySettings:
    """Tests for tenant context settings."""

    def test_defaults(self):
        settings = TenancySettings()
        assert settings.default_business_name == "My Business"
        assert settings.default_currency == "INR"
        assert settings.default_fiscal_year == "april-march"
        assert settings.provision_retry_limit == 3

    @pytest.mark.parametrize("limit", [0, 11])
    def test_retry_limit_bounds(self, limit):
        with pytest.raises(ValidationError):
            TenancySettings(provision_retry_limit=limit)

    def test_default_name_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            TenancySettings(default_business_name="")
