"""Default claims validation.

Runs after the signature has been verified. Only registered time, issuer and
audience claims are interpreted; anything application-specific belongs in a
custom validator passed as the ``claims_validator`` option.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from .errors import (
    DecodeError,
    ExpiredToken,
    ImmatureSignature,
    InvalidAudience,
    InvalidIssuer,
    MissingRequiredClaim,
)

if TYPE_CHECKING:
    from .options import DecodeOptions
    from .protocols import Payload


class StandardClaimsValidator:
    """Checks ``exp``, ``nbf``, ``iss``, ``aud`` and required claims.

    ``exp`` and ``nbf`` honour ``options.leeway`` (seconds). Issuer and
    audience are only checked when the corresponding option is set.
    Payloads that are not JSON objects carry no claims and pass unchanged.
    """

    def validate(self, payload: Payload, options: DecodeOptions) -> None:
        if not isinstance(payload, Mapping):
            return

        for claim in options.required_claims:
            if claim not in payload:
                raise MissingRequiredClaim(f'Token is missing the "{claim}" claim')

        now = time.time()
        leeway = options.leeway

        if options.verify_expiration and "exp" in payload:
            exp = _numeric(payload, "exp", "Expiration Time")
            if exp <= now - leeway:
                raise ExpiredToken("Signature has expired")

        if options.verify_not_before and "nbf" in payload:
            nbf = _numeric(payload, "nbf", "Not Before")
            if nbf > now + leeway:
                raise ImmatureSignature("Signature nbf has not been reached")

        if options.issuer is not None:
            self._check_issuer(payload, options.issuer)

        if options.audience is not None:
            self._check_audience(payload, options.audience)

    @staticmethod
    def _check_issuer(payload: Mapping[str, object], expected: str | Iterable[str]) -> None:
        allowed = {expected} if isinstance(expected, str) else set(expected)
        if payload.get("iss") not in allowed:
            raise InvalidIssuer("Invalid issuer")

    @staticmethod
    def _check_audience(payload: Mapping[str, object], expected: str | Iterable[str]) -> None:
        if "aud" not in payload:
            raise MissingRequiredClaim('Token is missing the "aud" claim')

        aud = payload["aud"]
        if isinstance(aud, str):
            audiences = {aud}
        elif isinstance(aud, list) and all(isinstance(a, str) for a in aud):
            audiences = set(aud)
        else:
            raise InvalidAudience("Invalid claim format in token")

        wanted = {expected} if isinstance(expected, str) else set(expected)
        if not audiences & wanted:
            raise InvalidAudience("Audience doesn't match")


def _numeric(payload: Mapping[str, object], claim: str, label: str) -> float:
    value = payload[claim]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{label} claim ({claim}) must be a number")
    return float(value)
