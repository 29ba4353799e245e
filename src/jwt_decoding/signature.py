"""Signature checking.

``SignatureEngine`` is a thin adapter over PyJWT's algorithm implementations
(HMAC, RSA, RSA-PSS, EC and EdDSA; the asymmetric families need the
``cryptography`` backend). ``SignatureVerifier`` walks every
(algorithm, key) candidate and succeeds on the first that verifies.

Security Notes:
    - The ``none`` shortcut is only reachable after negotiation has accepted
      ``none``. It is never added implicitly.
    - Failure messages never reveal which algorithm or key was attempted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from jwt import PyJWK
from jwt.algorithms import get_default_algorithms
from jwt.exceptions import InvalidKeyError

from .algorithms import AlgorithmMatching, CapabilityAlgorithm, IdentifierAlgorithm
from .errors import IncorrectAlgorithm, VerificationError

if TYPE_CHECKING:
    from jwt.algorithms import Algorithm as EngineAlgorithm

    from .algorithms import Algorithm
    from .pipeline import DecodeContext

logger = logging.getLogger(__name__)


def is_none_algorithm(alg: object) -> bool:
    return isinstance(alg, str) and alg.casefold() == "none"


class SignatureEngine:
    """Verifies raw signatures for plain algorithm identifiers.

    Example:
        ```python
        engine = SignatureEngine()
        engine.verify("HS256", b"secret", b"header.payload", signature)
        ```
    """

    def __init__(self, algorithms: dict[str, EngineAlgorithm] | None = None) -> None:
        self._algorithms = algorithms if algorithms is not None else get_default_algorithms()
        self._folded = {name.casefold(): impl for name, impl in self._algorithms.items()}

    def supported(self) -> frozenset[str]:
        """Identifiers this engine can verify."""
        return frozenset(self._algorithms)

    def verify(
        self,
        alg: str,
        key: Any,
        signing_input: bytes,
        signature: bytes,
        *,
        matching: AlgorithmMatching = AlgorithmMatching.STRICT,
    ) -> bool:
        """Return True if ``signature`` is valid for ``signing_input``.

        A key that does not suit the algorithm (an RSA key offered to HS256,
        say) is treated as a non-verifying candidate. A private key is
        reduced to its public half. With ``AlgorithmMatching.LEGACY`` the
        identifier is looked up case-insensitively.

        Raises:
            IncorrectAlgorithm: If ``alg`` has no implementation.
        """
        impl = self._algorithms.get(alg)
        if impl is None and matching is AlgorithmMatching.LEGACY:
            impl = self._folded.get(alg.casefold())
        if impl is None:
            raise IncorrectAlgorithm("Algorithm not supported")

        if isinstance(key, PyJWK):
            key = key.key

        try:
            prepared = impl.prepare_key(key)
        except (InvalidKeyError, TypeError):
            logger.debug("Candidate key rejected by %s key preparation", alg)
            return False

        if isinstance(prepared, PrivateKeyTypes):
            prepared = prepared.public_key()

        return bool(impl.verify(signing_input, prepared, signature))


class SignatureVerifier:
    """Tries candidate (algorithm, key) pairs against the token signature."""

    def __init__(self, engine: SignatureEngine | None = None) -> None:
        self._engine = engine or SignatureEngine()

    def verify(
        self,
        context: DecodeContext,
        algorithms: tuple[Algorithm, ...],
        keys: list[Any],
        *,
        matching: AlgorithmMatching = AlgorithmMatching.STRICT,
    ) -> None:
        """Succeed silently or raise.

        Raises:
            VerificationError: If no pair verifies, including when there are
                no pairs at all.
        """
        if is_none_algorithm(context.header.get("alg")):
            logger.debug("Unsigned token accepted by allow-list; skipping signature")
            return

        for algorithm in algorithms:
            for key in keys:
                if self._verify_one(context, algorithm, key, matching):
                    return

        raise VerificationError("Signature verification failed")

    def _verify_one(
        self,
        context: DecodeContext,
        algorithm: Algorithm,
        key: Any,
        matching: AlgorithmMatching,
    ) -> bool:
        if isinstance(algorithm, IdentifierAlgorithm):
            return self._engine.verify(
                algorithm.name,
                key,
                context.signing_input,
                context.signature,
                matching=matching,
            )
        if isinstance(algorithm, CapabilityAlgorithm):
            return algorithm.verify(
                context.signing_input,
                context.signature,
                key=key,
                header=context.header,
                payload=context.payload,
            )
        raise TypeError(f"Unsupported algorithm variant {algorithm!r}")
