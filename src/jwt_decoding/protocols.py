"""Protocol definitions for the JWT decoding package.

This module defines structural interfaces using Protocol (PEP 544) for:
- Capability-bearing signing algorithms
- Claims validation
- Token decoding
- Token extraction

Using protocols allows for duck-typing and easier testing/mocking without
requiring explicit inheritance. Any class that implements the required methods
satisfies the protocol.

Type aliases provide semantic clarity and adapt easily to future changes.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from .options import DecodeOptions

# ============================================================================
# Type Aliases
# ============================================================================

Header: TypeAlias = dict[str, Any]
"""Decoded JOSE header. Always a JSON object."""

Payload: TypeAlias = Any
"""Decoded JWT payload. Commonly a mapping, but any JSON value is accepted."""

Claims: TypeAlias = Mapping[str, Any]
"""Represents a decoded JWT payload that is a JSON object."""

PayloadDecoder: TypeAlias = Callable[[str, Header, bytes], str]
"""Payload transform: ``(raw_segment, header, signature) -> base64url JSON``."""

ViewFunc: TypeAlias = Callable[..., Any]
"""Type alias for Flask view functions (callable that takes any args and returns any)."""


# ============================================================================
# Core Protocols
# ============================================================================


@runtime_checkable
class SigningAlgorithm(Protocol):
    """Protocol for capability-bearing algorithms in an allow-list.

    Plain identifiers such as ``"HS256"`` are matched by name and verified by
    the signature engine. Objects implementing this protocol decide both
    things themselves, which allows schemes that need header material (an
    inline certificate, for example) to take part in negotiation.
    """

    def valid_alg(self, alg: str) -> bool:
        """Return True if this algorithm handles the declared ``alg``."""
        ...

    def verify(
        self,
        signing_input: bytes,
        signature: bytes,
        *,
        key: Any,
        header: Header,
        payload: Payload,
    ) -> bool:
        """Check ``signature`` over ``signing_input``.

        Must return a boolean rather than raise for a non-matching signature.
        """
        ...


class ClaimsValidatorProtocol(Protocol):
    """Protocol for validating payload claims after the signature checks out."""

    def validate(self, payload: Payload, options: DecodeOptions) -> None:
        """Raise an AuthError subclass if the claims are not acceptable."""
        ...


class TokenDecoder(Protocol):
    """Protocol for JWT decoder implementations.

    Implementers must provide a decode() method that validates the token and
    returns ``(payload, header)``.
    """

    def decode(
        self,
        token: str,
        options: Mapping[Any, Any] | None = None,
        **overrides: Any,
    ) -> tuple[Payload, Header]:
        """Decode and verify a JWT.

        Raises:
            DecodeError: Structural, algorithm, signature or key failures.
            ExpiredToken: Token's exp claim has passed.
            AuthError: Any other verification failure.
        """
        ...


class Extractor(Protocol):
    """Protocol for extracting JWT tokens from HTTP requests.

    Implementers must provide an extract() method that retrieves the raw JWT
    string from a Flask request context.
    """

    def extract(self) -> str:
        """Extract the raw JWT string from the Flask request.

        Raises:
            MissingToken: Token not found or improperly formatted.
        """
        ...
