"""The decode state machine.

::

    INIT -> SEGMENTS_VALIDATED -> ALGORITHM_CHECKED -> SIGNATURE_CHECKED
         -> CLAIMS_CHECKED -> DONE

With verification disabled the pipeline goes straight from
SEGMENTS_VALIDATED to DONE. Every transition either succeeds or raises the
responsible component's error; no later stage runs after a failure.

A pipeline object serves exactly one call. Everything derived from the token
lives in its ``DecodeContext``, which is built once by the INIT stage and is
never shared.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from .algorithms import AlgorithmNegotiator
from .errors import DecodeError
from .keys import KeyOrchestrator
from .segments import (
    VALID_SEGMENT_COUNTS,
    decode_header,
    decode_payload,
    decode_signature,
    split_token,
    validate_segment_count,
)
from .signature import SignatureVerifier, is_none_algorithm

if TYPE_CHECKING:
    from .algorithms import Algorithm
    from .options import DecodeOptions
    from .protocols import Header, Payload

logger = logging.getLogger(__name__)


class DecodeState(Enum):
    INIT = auto()
    SEGMENTS_VALIDATED = auto()
    ALGORITHM_CHECKED = auto()
    SIGNATURE_CHECKED = auto()
    CLAIMS_CHECKED = auto()
    DONE = auto()


@dataclass(frozen=True, slots=True)
class DecodeContext:
    """Per-call decoded token material."""

    segments: tuple[str, ...]
    header: Header
    payload: Payload
    signature: bytes

    @property
    def signing_input(self) -> bytes:
        """Header and payload segments, still encoded, joined by ``.``."""
        return ".".join(self.segments[:2]).encode("utf-8")


class DecodePipeline:
    """Runs one token through segmenting, negotiation, keys, signature and claims.

    Example:
        ```python
        options = DecodeOptions.from_mapping({"key": secret, "algorithms": ["HS256"]})
        payload, header = DecodePipeline(token, options).run()
        ```
    """

    def __init__(
        self,
        token: str,
        options: DecodeOptions,
        *,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        self._token = token
        self._options = options
        self._verifier = verifier or SignatureVerifier()
        self.state = DecodeState.INIT
        self.context: DecodeContext | None = None
        self._started = False

    def run(self) -> tuple[Payload, Header]:
        context = self._validate_segments()
        if self._options.verify:
            algorithms = self._check_algorithm(context)
            keys = []
            if not is_none_algorithm(context.header.get("alg")):
                keys = KeyOrchestrator(self._options).resolve(context.header, context.payload)
            self._check_signature(context, algorithms, keys)
            self._check_claims(context)
        return self._done(context)

    async def run_async(self) -> tuple[Payload, Header]:
        """Like run(), awaiting asynchronous key sources before the signature check."""
        context = self._validate_segments()
        if self._options.verify:
            algorithms = self._check_algorithm(context)
            keys = []
            if not is_none_algorithm(context.header.get("alg")):
                keys = await KeyOrchestrator(self._options).resolve_async(
                    context.header, context.payload
                )
            self._check_signature(context, algorithms, keys)
            self._check_claims(context)
        return self._done(context)

    def _advance(self, state: DecodeState) -> None:
        logger.debug("decode %s -> %s", self.state.name, state.name)
        self.state = state

    def _validate_segments(self) -> DecodeContext:
        if self._started:
            raise RuntimeError("DecodePipeline instances are single-use")
        self._started = True

        segments = split_token(self._token)
        if len(segments) not in VALID_SEGMENT_COUNTS:
            raise DecodeError("Not enough or too many segments")

        header = decode_header(segments[0])
        validate_segment_count(
            segments,
            verify=self._options.verify,
            alg=header.get("alg"),
            matching=self._options.algorithm_matching,
        )

        signature = decode_signature(segments[2] if len(segments) == 3 else None)
        payload = decode_payload(
            segments[1], header, signature, self._options.decode_payload
        )

        self.context = DecodeContext(
            segments=tuple(segments),
            header=header,
            payload=payload,
            signature=signature,
        )
        self._advance(DecodeState.SEGMENTS_VALIDATED)
        return self.context

    def _check_algorithm(self, context: DecodeContext) -> tuple[Algorithm, ...]:
        negotiator = AlgorithmNegotiator(
            self._options.algorithms, self._options.algorithm_matching
        )
        algorithms = negotiator.negotiate(context.header)
        self._advance(DecodeState.ALGORITHM_CHECKED)
        return algorithms

    def _check_signature(
        self,
        context: DecodeContext,
        algorithms: tuple[Algorithm, ...],
        keys: list[Any],
    ) -> None:
        self._verifier.verify(
            context, algorithms, keys, matching=self._options.algorithm_matching
        )
        self._advance(DecodeState.SIGNATURE_CHECKED)

    def _check_claims(self, context: DecodeContext) -> None:
        self._options.claims_validator.validate(context.payload, self._options)
        self._advance(DecodeState.CLAIMS_CHECKED)

    def _done(self, context: DecodeContext) -> tuple[Payload, Header]:
        self._advance(DecodeState.DONE)
        return context.payload, context.header
