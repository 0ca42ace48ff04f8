"""Protocol for OTP challenge observability.

Defines the interface for domain probes that capture application-level
domain events of the OTP challenge state machine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class OtpChallengeProbe(Protocol):
    """Domain probe for OTP challenge operations."""

    def challenge_started(self, channel: str, mode: str, subject: str) -> None:
        """Record that a code was sent and a challenge is in flight."""
        ...

    def account_not_found(self, channel: str) -> None:
        """Record that a login was attempted for an unknown identifier."""
        ...

    def challenge_verified(self, channel: str, subject: str) -> None:
        """Record that a challenge was verified and a session issued."""
        ...

    def code_rejected(self, channel: str, subject: str) -> None:
        """Record that a verification code did not match."""
        ...

    def challenge_expired(self, channel: str, subject: str) -> None:
        """Record that a verification was attempted after expiry."""
        ...

    def challenge_resent(self, channel: str, subject: str) -> None:
        """Record that a fresh code was sent for an in-flight challenge."""
        ...

    def challenge_cancelled(self, channel: str) -> None:
        """Record that a challenge was abandoned."""
        ...

    def identifier_in_use(self, channel: str, subject: str) -> None:
        """Record that a link was refused because another account owns the identifier."""
        ...

    def verified_session_refresh_failed(
        self, channel: str, subject: str, error: Exception
    ) -> None:
        """Record that the post-verification session refresh failed."""
        ...

    def with_context(self, context: ObservationContext) -> OtpChallengeProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultOtpChallengeProbe:
    """Default implementation of OtpChallengeProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultOtpChallengeProbe:
        """Create a new probe with observation context bound."""
        return DefaultOtpChallengeProbe(logger=self._logger, context=context)

    def challenge_started(self, channel: str, mode: str, subject: str) -> None:
        """Record that a code was sent and a challenge is in flight."""
        self._logger.info(
            "otp_challenge_started",
            channel=channel,
            mode=mode,
            subject=subject,
            **self._get_context_kwargs(),
        )

    def account_not_found(self, channel: str) -> None:
        """Record that a login was attempted for an unknown identifier."""
        self._logger.info(
            "otp_account_not_found",
            channel=channel,
            **self._get_context_kwargs(),
        )

    def challenge_verified(self, channel: str, subject: str) -> None:
        """Record that a challenge was verified and a session issued."""
        self._logger.info(
            "otp_challenge_verified",
            channel=channel,
            subject=subject,
            **self._get_context_kwargs(),
        )

    def code_rejected(self, channel: str, subject: str) -> None:
        """Record that a verification code did not match."""
        self._logger.warning(
            "otp_code_rejected",
            channel=channel,
            subject=subject,
            **self._get_context_kwargs(),
        )

    def challenge_expired(self, channel: str, subject: str) -> None:
        """Record that a verification was attempted after expiry."""
        self._logger.info(
            "otp_challenge_expired",
            channel=channel,
            subject=subject,
            **self._get_context_kwargs(),
        )

    def challenge_resent(self, channel: str, subject: str) -> None:
        """Record that a fresh code was sent for an in-flight challenge."""
        self._logger.info(
            "otp_challenge_resent",
            channel=channel,
            subject=subject,
            **self._get_context_kwargs(),
        )

    def challenge_cancelled(self, channel: str) -> None:
        """Record that a challenge was abandoned."""
        self._logger.info(
            "otp_challenge_cancelled",
            channel=channel,
            **self._get_context_kwargs(),
        )

    def verified_session_refresh_failed(
        self, channel: str, subject: str, error: Exception
    ) -> None:
        """Record that the post-verification session refresh failed."""
        self._logger.warning(
            "otp_verified_session_refresh_failed",
            channel=channel,
            subject=subject,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def identifier_in_use(self, channel: str, subject: str) -> None:
        """Record that a link was refused because another account owns the identifier."""
        self._logger.warning(
            "otp_link_identifier_in_use",
            channel=channel,
            subject=subject,
            **self._get_context_kwargs(),
        )
