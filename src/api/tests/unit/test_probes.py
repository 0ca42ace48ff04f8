"""Unit tests for domain probes.

Tests that domain probes correctly capture domain events
following the Domain Oriented Observability pattern.
"""

from unittest.mock import MagicMock

import structlog

from identity.application.observability import DefaultOtpChallengeProbe
from infrastructure.observability import ObservationContext
from infrastructure.observability.probes import DefaultConnectionProbe
from shared_kernel.middleware.observability import DefaultEdgeGateProbe
from tenancy.application.observability import DefaultTenantContextProbe


class TestConnectionProbe:
    """Tests for ConnectionProbe protocol and implementation."""

    def test_default_probe_creates_with_default_logger(self):
        """Default probe should work without explicit logger."""
        probe = DefaultConnectionProbe()
        assert probe._logger is not None

    def test_default_probe_accepts_custom_logger(self):
        """Default probe should accept a custom logger."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultConnectionProbe(logger=mock_logger)
        assert probe._logger is mock_logger

    def test_engine_created_logs_info(self):
        """engine_created should log role, host, database and pool size."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.engine_created(role="write", host="localhost", database="db", pool_size=5)

        mock_logger.info.assert_called_once_with(
            "database_engine_created",
            role="write",
            host="localhost",
            database="db",
            pool_size=5,
        )

    def test_session_failed_logs_error(self):
        """session_failed should log the error and its type."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.session_failed(role="write", error=RuntimeError("boom"))

        mock_logger.error.assert_called_once_with(
            "database_session_failed",
            role="write",
            error="boom",
            error_type="RuntimeError",
        )


class TestProbeContext:
    """Tests that probes include observation context in every event."""

    def test_edge_gate_probe_includes_request_id(self):
        """Bound context should be merged into the log call."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultEdgeGateProbe(logger=mock_logger).with_context(
            ObservationContext(request_id="req-1")
        )

        probe.request_rewritten(
            path="/dashboard",
            route_class="protected",
            target="/unauthorized",
            subject=None,
        )

        mock_logger.info.assert_called_once_with(
            "edge_request_rewritten",
            path="/dashboard",
            route_class="protected",
            target="/unauthorized",
            subject=None,
            request_id="req-1",
        )

    def test_with_context_keeps_logger(self):
        """with_context should return a new probe sharing the logger."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultTenantContextProbe(logger=mock_logger)

        bound = probe.with_context(ObservationContext(request_id="req-2"))

        assert bound is not probe
        assert bound._logger is mock_logger

    def test_context_extra_is_flattened(self):
        """Extra metadata should appear as top-level log keys."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        context = ObservationContext(request_id="req-3").with_extra(client="web")
        probe = DefaultOtpChallengeProbe(logger=mock_logger).with_context(context)

        probe.challenge_cancelled(channel="email")

        mock_logger.info.assert_called_once_with(
            "otp_challenge_cancelled",
            channel="email",
            request_id="req-3",
            client="web",
        )

    def test_stale_pointer_logs_warning(self):
        """Repaired stale pointers should be visible as warnings."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultTenantContextProbe(logger=mock_logger)

        probe.stale_pointer_repaired(
            pointer="01ARZ3NDEKTSV4RRFFQ69G5FAV",
            owner_id="u1",
            reason="Business was deleted",
        )

        mock_logger.warning.assert_called_once_with(
            "stale_business_pointer_repaired",
            pointer="01ARZ3NDEKTSV4RRFFQ69G5FAV",
            owner_id="u1",
            reason="Business was deleted",
        )
