"""Identity token decoding.

An identity token is a compact three-segment token ``header.payload.signature``
whose payload is a base64url-encoded JSON object of claims. Only the payload
is read; the signature is not verified, so the claims are informational.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from tokenflow.auth.client.models.claims import IdentityClaims
from tokenflow.auth.client.models.errors import ErrorCode, IdentityTokenParseError
from tokenflow.shared.logging import LoggingContext, get_default_logging_context
from tokenflow.shared.utils import b64url_decode


def flatten_json_object(text: str) -> dict[str, str]:
    """Parse a JSON object into a flat string-to-string mapping.

    Scalar values are converted to strings; nested values are kept as their
    JSON text and nulls are dropped.

    Raises:
        ValueError: If the text is not a JSON object
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

    return {
        key: _stringify(value) for key, value in data.items() if value is not None
    }


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"))


def extract_payload(compact_token: str) -> str:
    """Return the middle segment of a compact token.

    Requires exactly two dots with non-empty header and payload segments.

    Raises:
        IdentityTokenParseError: If the token does not have that shape
    """
    first_dot = compact_token.find(".")
    second_dot = compact_token.find(".", first_dot + 1)
    extra_dot = compact_token.find(".", second_dot + 1)

    if first_dot <= 0 or second_dot <= first_dot + 1 or extra_dot != -1:
        raise IdentityTokenParseError("Identity token must have three segments")

    return compact_token[first_dot + 1 : second_dot]


class IdentityTokenDecoder:
    """Decodes identity claims from compact identity tokens."""

    def __init__(self, logging_context: LoggingContext | None = None):
        context = logging_context or get_default_logging_context()
        self._logger = context.get_logger(__name__)

    def decode(self, compact_token: str) -> IdentityClaims | None:
        """Decode the claims, or return None if the token is malformed.

        A malformed token never fails the surrounding flow; the failure is
        logged and the caller proceeds without claims.
        """
        try:
            return self._decode_claims(compact_token)
        except IdentityTokenParseError as e:
            self._logger.error(
                "Error in parsing user id token",
                str(e),
                ErrorCode.IDTOKEN_PARSING_FAILURE,
                e,
            )
            return None

    def _decode_claims(self, compact_token: str) -> IdentityClaims | None:
        payload = extract_payload(compact_token)

        try:
            claims_map = flatten_json_object(b64url_decode(payload).decode("utf-8"))
        except ValueError as e:
            raise IdentityTokenParseError(f"Invalid identity token payload: {e}") from e

        if not claims_map:
            return None

        try:
            claims = IdentityClaims.model_validate(claims_map)
        except ValidationError as e:
            raise IdentityTokenParseError(f"Invalid identity token claims: {e}") from e

        self._logger.verbose(
            "Identity token extracted from token response",
            f"subject: {claims.subject}",
        )
        return claims
