"""Algorithm representation and negotiation.

An allow-list entry is one of two variants:

- ``IdentifierAlgorithm``: a plain name such as ``"HS256"``, matched against
  the header's ``alg`` and verified by the signature engine.
- ``CapabilityAlgorithm``: wraps an object implementing the
  ``SigningAlgorithm`` protocol, which decides both matching and
  verification itself.

Both variants may coexist in one allow-list.

Case sensitivity of identifier matching is explicit. Historically, one decode
path compared case-insensitively and the other exactly; ``AlgorithmMatching``
selects between the two and is also used for the two-segment ``none`` check.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeAlias

from .errors import IncorrectAlgorithm
from .protocols import SigningAlgorithm

if TYPE_CHECKING:
    from .protocols import Header, Payload

logger = logging.getLogger(__name__)


class AlgorithmMatching(Enum):
    """How plain algorithm identifiers are compared to the header's ``alg``."""

    STRICT = "strict"
    """Exact, case-sensitive comparison."""

    LEGACY = "legacy"
    """Case-insensitive comparison."""

    def same(self, declared: object, expected: str) -> bool:
        if not isinstance(declared, str):
            return False
        if self is AlgorithmMatching.LEGACY:
            return declared.casefold() == expected.casefold()
        return declared == expected


@dataclass(frozen=True, slots=True)
class IdentifierAlgorithm:
    """An allow-list entry given as a plain algorithm name."""

    name: str

    def matches(self, alg: str, matching: AlgorithmMatching) -> bool:
        return matching.same(alg, self.name)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class CapabilityAlgorithm:
    """An allow-list entry that matches and verifies on its own."""

    impl: SigningAlgorithm

    def matches(self, alg: str, matching: AlgorithmMatching) -> bool:
        return bool(self.impl.valid_alg(alg))

    def verify(
        self,
        signing_input: bytes,
        signature: bytes,
        *,
        key: Any,
        header: Header,
        payload: Payload,
    ) -> bool:
        return bool(
            self.impl.verify(
                signing_input, signature, key=key, header=header, payload=payload
            )
        )


Algorithm: TypeAlias = IdentifierAlgorithm | CapabilityAlgorithm


def to_algorithm(value: object) -> Algorithm:
    """Normalize a raw allow-list entry into one of the two variants.

    Raises:
        TypeError: If ``value`` is neither a string nor a SigningAlgorithm.
    """
    if isinstance(value, (IdentifierAlgorithm, CapabilityAlgorithm)):
        return value
    if isinstance(value, str):
        return IdentifierAlgorithm(value)
    if isinstance(value, SigningAlgorithm):
        return CapabilityAlgorithm(value)
    raise TypeError(
        f"Unsupported algorithm entry {value!r}: expected a str or a SigningAlgorithm"
    )


def to_algorithms(value: object) -> tuple[Algorithm, ...]:
    """Normalize a scalar, ``None`` or an iterable into a tuple of variants."""
    if value is None:
        return ()
    if isinstance(value, (str, IdentifierAlgorithm, CapabilityAlgorithm)):
        return (to_algorithm(value),)
    if isinstance(value, Iterable):
        return tuple(to_algorithm(item) for item in value)
    return (to_algorithm(value),)


class AlgorithmNegotiator:
    """Resolves the header's declared algorithm against the allow-list.

    The allow-list is never extended implicitly. In particular ``none`` is
    only accepted when the caller listed it.
    """

    def __init__(
        self,
        allowed: tuple[Algorithm, ...],
        matching: AlgorithmMatching = AlgorithmMatching.STRICT,
    ) -> None:
        self._allowed = allowed
        self._matching = matching

    def negotiate(self, header: Header) -> tuple[Algorithm, ...]:
        """Return the allow-list entries that accept the header's ``alg``.

        Raises:
            IncorrectAlgorithm: In this order, if the allow-list is empty, the
                header has no ``alg``, or no entry accepts it.
        """
        if not self._allowed:
            raise IncorrectAlgorithm("An algorithm must be specified")

        alg = header.get("alg")
        if not isinstance(alg, str):
            raise IncorrectAlgorithm("Token is missing alg header")

        matched = tuple(a for a in self._allowed if a.matches(alg, self._matching))
        if not matched:
            logger.debug("Declared algorithm %r is not allowed", alg)
            raise IncorrectAlgorithm("Expected a different algorithm")
        return matched
