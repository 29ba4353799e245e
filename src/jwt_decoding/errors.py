"""Token decoding and authentication errors.

This module defines the exception hierarchy for JWT decoding failures.
All errors inherit from AuthError to allow catch-all error handling.

Every class carries an ``error_code`` (the HTTP status the Flask layer answers
with) and a ``description`` (the client-safe message).

Security Note:
    Error messages are intentionally generic to avoid leaking implementation
    details. In particular, a signature failure never names the key or the
    algorithm that was tried.
"""

from __future__ import annotations

from typing import ClassVar


class AuthError(Exception):
    """Base exception for all authentication failures.

    Application code can catch this single exception type to handle any
    decoding or authentication failure generically.

    Attributes:
        error_code: HTTP status code to answer with.
        args: Standard Exception args (typically a message string).
    """

    error_code: ClassVar[int] = 401

    @property
    def description(self) -> str:
        """Human-readable message, falling back to the class name."""
        return str(self) or type(self).__name__


class MissingToken(AuthError):  # noqa: N818
    """Raised when no authentication token is found in the request.

    This occurs when:
    - The Authorization header is missing
    - The Authorization header has an invalid format (e.g., not "Bearer <token>")
    - The specified cookie is missing (when using cookie-based extraction)
    """


class InvalidToken(AuthError):  # noqa: N818
    """Raised when a token is present but cannot be trusted.

    Parent of every structural, algorithm, signature, key-resolution and
    claim failure. This should typically result in an HTTP 401 response.
    """


class DecodeError(InvalidToken):
    """Raised when the token structure cannot be decoded.

    This occurs when:
    - The token is not a string or is empty
    - The segment count is not 2 or 3 (or is 2 for a signed token)
    - A segment is not valid base64url or not valid JSON
    - The header is not a JSON object
    """


class IncorrectAlgorithm(DecodeError):  # noqa: N818
    """Raised when algorithm negotiation fails.

    This occurs when:
    - Verification is enabled but no algorithm is allowed
    - The header carries no ``alg``
    - The declared ``alg`` is not in the allow-list (including algorithm
      confusion attempts)
    - The allowed identifier has no signature engine implementation
    """


class VerificationError(DecodeError):
    """Raised when no (algorithm, key) combination validates the signature."""


class KeyResolutionError(DecodeError):
    """Raised when no verification key can be resolved for the token.

    Covers the "no verification key available" case as well as JWKS and
    X.509 chain lookup failures.
    """


class ExpiredToken(AuthError):  # noqa: N818
    """Raised when a token's expiration time (exp claim) has passed.

    Leeway has already been accounted for. Treat identically to InvalidToken
    from a security perspective; the distinction helps with metrics.
    """


class ImmatureSignature(InvalidToken):  # noqa: N818
    """Raised when the ``nbf`` claim lies in the future."""


class InvalidIssuer(InvalidToken):  # noqa: N818
    """Raised when the ``iss`` claim does not match the expected issuer."""


class InvalidAudience(InvalidToken):  # noqa: N818
    """Raised when the ``aud`` claim does not contain the expected audience."""


class MissingRequiredClaim(InvalidToken):  # noqa: N818
    """Raised when a claim listed in ``required_claims`` is absent."""
