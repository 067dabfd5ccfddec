"""Identity claims carried in the payload of an identity token."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class IdentityClaims(BaseModel):
    """Flat string claims recognized in an identity token payload.

    Fields are populated from the short claim names used on the wire
    (``sub``, ``tid``, ``upn`` ...). Unrecognized claims are ignored and
    absent claims stay ``None``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    subject: str | None = Field(default=None, alias="sub")
    tenant_id: str | None = Field(default=None, alias="tid")
    upn: str | None = None
    email: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    identity_provider: str | None = Field(default=None, alias="idp")
