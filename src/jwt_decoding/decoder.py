"""Public decode entry points and configuration merging.

``DecoderDefaults`` holds the configured defaults of a decoder (the algorithm
allow-list, keys, payload transform, JWKS source, leeway). Each call builds
its effective ``DecodeOptions`` from those defaults and the call-site options:

- key: call-site ``key``, else ``verification_key``, else ``signing_key``
- algorithms: ``algorithm`` followed by ``algorithms``, deduplicated in
  first-occurrence order
- decode_payload, leeway, jwks, algorithm_matching: from the defaults

Call-site options then override the result entry by entry (shallow merge).

Example:
    ```python
    decoder = JWTDecoder(DecoderDefaults(algorithm="HS256", verification_key=secret))
    payload, header = decoder.decode(token)

    # or with class-level defaults
    class ServiceTokens(JWTDecoder):
        defaults = DecoderDefaults(algorithms=("RS256",), jwk_resolver=jwks)

    payload, header = ServiceTokens().decode(token, audience="my-api")
    ```
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, ClassVar

from .algorithms import AlgorithmMatching
from .jwks import JWKSKeyFinder
from .options import DecodeOptions, Option
from .pipeline import DecodePipeline
from .signature import SignatureVerifier

if TYPE_CHECKING:
    from .protocols import Header, Payload, PayloadDecoder


@dataclass(frozen=True, slots=True)
class DecoderDefaults:
    """Configured defaults for a JWTDecoder.

    Attributes:
        algorithm: A single allowed algorithm.
        algorithms: Further allowed algorithms.
        verification_key: Key (or keys) used to verify signatures.
        signing_key: Fallback key when no verification key is configured
            (symmetric algorithms use the same secret for both).
        decode_payload: Payload transform ``(raw, header, signature) -> str``.
        jwk_resolver: JWKS source used for ``kid`` lookups.
        expiration_leeway: Clock skew tolerance in seconds.
        algorithm_matching: Identifier comparison mode.
    """

    algorithm: Any = None
    algorithms: Sequence[Any] = ()
    verification_key: Any = None
    signing_key: Any = None
    decode_payload: PayloadDecoder | None = None
    jwk_resolver: Any = None
    expiration_leeway: float = 0
    algorithm_matching: AlgorithmMatching = AlgorithmMatching.STRICT


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _unique(values: list[Any]) -> list[Any]:
    seen: list[Any] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def _first_present(*values: Any) -> Any:
    return next((v for v in values if v is not None), None)


def build_decode_options(
    overrides: Mapping[Any, Any] | None,
    defaults: DecoderDefaults,
) -> DecodeOptions:
    """Merge configured defaults with call-site options.

    Defaults are stored under ``Option`` members so that a call-site option
    replaces them whichever spelling the caller used.
    """
    overrides = dict(overrides or {})
    merged: dict[Any, Any] = {
        Option.VERIFY: True,
        Option.KEY: _first_present(defaults.verification_key, defaults.signing_key),
        Option.ALGORITHMS: _unique(
            _as_list(defaults.algorithm) + _as_list(defaults.algorithms)
        ),
        Option.DECODE_PAYLOAD: defaults.decode_payload,
        Option.LEEWAY: defaults.expiration_leeway,
        Option.JWKS: defaults.jwk_resolver,
        Option.ALGORITHM_MATCHING: defaults.algorithm_matching,
    }
    merged.update(overrides)
    return DecodeOptions.from_mapping(merged)


class JWTDecoder:
    """Decodes and verifies compact JWTs with configured defaults.

    A decoder holds only immutable configuration and can be shared freely
    between threads and tasks; every call runs its own DecodePipeline. A
    configured ``jwk_resolver`` is wrapped once in a JWKSKeyFinder owned by
    the decoder, so its key set cache and reload throttle outlive single
    calls. A ``jwks`` passed per call gets no such sharing unless it is a
    JWKSKeyFinder itself.
    """

    defaults: ClassVar[DecoderDefaults] = DecoderDefaults()

    def __init__(
        self,
        defaults: DecoderDefaults | None = None,
        *,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        defaults = defaults or type(self).defaults
        resolver = defaults.jwk_resolver
        if resolver is not None and not isinstance(resolver, JWKSKeyFinder):
            defaults = replace(defaults, jwk_resolver=JWKSKeyFinder(resolver))
        self._defaults = defaults
        self._verifier = verifier or SignatureVerifier()

    def options_for(
        self,
        options: Mapping[Any, Any] | None = None,
        **overrides: Any,
    ) -> DecodeOptions:
        """Effective options for a call with the given call-site options."""
        return build_decode_options({**(options or {}), **overrides}, self._defaults)

    def decode(
        self,
        token: str,
        options: Mapping[Any, Any] | None = None,
        **overrides: Any,
    ) -> tuple[Payload, Header]:
        """Decode ``token`` and return ``(payload, header)``.

        Raises:
            DecodeError: Structural, algorithm, signature or key failures.
            ExpiredToken: The ``exp`` claim has passed.
            AuthError: Any other claim failure.
        """
        pipeline = DecodePipeline(
            token, self.options_for(options, **overrides), verifier=self._verifier
        )
        return pipeline.run()

    async def decode_async(
        self,
        token: str,
        options: Mapping[Any, Any] | None = None,
        **overrides: Any,
    ) -> tuple[Payload, Header]:
        """Like decode(), for asynchronous key finders and JWKS loaders."""
        pipeline = DecodePipeline(
            token, self.options_for(options, **overrides), verifier=self._verifier
        )
        return await pipeline.run_async()


def decode(
    token: str,
    options: Mapping[Any, Any] | None = None,
    **overrides: Any,
) -> tuple[Payload, Header]:
    """Decode with no configured defaults; everything comes from the call."""
    return JWTDecoder().decode(token, options, **overrides)
