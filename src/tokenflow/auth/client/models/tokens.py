"""Authentication results produced at the end of a flow.

A result is either ``SucceededResult`` or ``FailedResult``; the two never
share fields, so callers branch on the type (or on ``status``) instead of
probing optional attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from uuid import UUID

from tokenflow.auth.client.models.claims import IdentityClaims
from tokenflow.auth.client.models.errors import ServerError
from tokenflow.shared.utils import is_blank

DEFAULT_EXPIRES_IN_SECONDS = 3600


class AuthenticationStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class UserInfo:
    """User identity derived from identity token claims."""

    user_id: str | None = None
    is_user_id_displayable: bool = False
    given_name: str | None = None
    family_name: str | None = None
    identity_provider: str | None = None
    tenant_id: str | None = None

    @classmethod
    def from_claims(cls, claims: IdentityClaims) -> UserInfo:
        """Build user info, preferring upn, then email, then subject as the id."""
        if not is_blank(claims.upn):
            user_id, displayable = claims.upn, True
        elif not is_blank(claims.email):
            user_id, displayable = claims.email, True
        elif not is_blank(claims.subject):
            user_id, displayable = claims.subject, False
        else:
            user_id, displayable = None, False

        return cls(
            user_id=user_id,
            is_user_id_displayable=displayable,
            given_name=claims.given_name,
            family_name=claims.family_name,
            identity_provider=claims.identity_provider,
            tenant_id=claims.tenant_id,
        )


@dataclass(frozen=True)
class SucceededResult:
    access_token: str
    expires_on: datetime
    refresh_token: str | None = None
    is_multi_resource_refresh_token: bool = False
    user_info: UserInfo | None = None
    identity_claims: IdentityClaims | None = None
    correlation_id: UUID | None = None

    @property
    def status(self) -> AuthenticationStatus:
        return AuthenticationStatus.SUCCEEDED

    def is_success(self) -> bool:
        return True

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_on

    def raise_for_status(self) -> None:
        return None


@dataclass(frozen=True)
class FailedResult:
    error_code: str
    error_description: str | None = None
    correlation_id: UUID | None = None

    @property
    def status(self) -> AuthenticationStatus:
        return AuthenticationStatus.FAILED

    def is_success(self) -> bool:
        return False

    def raise_for_status(self) -> None:
        """Raise the failure as a ``ServerError``."""
        raise ServerError(self.error_code, self.error_description)


AuthenticationResult = SucceededResult | FailedResult


def compute_expires_on(
    expires_in_seconds: int | None, captured_at: datetime | None = None
) -> datetime:
    """Absolute expiry from a relative lifetime, defaulting to one hour.

    A lifetime too large to represent as a datetime is treated as missing.
    """
    captured_at = captured_at or datetime.now(timezone.utc)
    if expires_in_seconds is not None:
        try:
            return captured_at + timedelta(seconds=expires_in_seconds)
        except OverflowError:
            pass
    return captured_at + timedelta(seconds=DEFAULT_EXPIRES_IN_SECONDS)
