"""Canonical per-call decode options.

Callers may spell option names as plain strings (``"algorithms"``) or as
``Option`` members (``Option.ALGORITHMS``). The raw mapping is collapsed into a
single frozen ``DecodeOptions`` record exactly once, at the boundary, and the
pipeline only ever reads that record.

When both spellings are present, the textual key wins over the ``Option``
member. For the allow-list, the singular ``algorithm`` entry also wins over
the plural ``algorithms`` entry; the first form *present* is used even if its
value is empty, and the others are ignored:

    "algorithm" > Option.ALGORITHM > "algorithms" > Option.ALGORITHMS
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Final

from cryptography import x509

from .algorithms import Algorithm, AlgorithmMatching, to_algorithms
from .claims import StandardClaimsValidator
from .keys import KeyFinder

if TYPE_CHECKING:
    from .protocols import ClaimsValidatorProtocol, PayloadDecoder


class Option(Enum):
    """Symbolic option names, accepted alongside their string values."""

    VERIFY = "verify"
    ALGORITHM = "algorithm"
    ALGORITHMS = "algorithms"
    KEY = "key"
    JWKS = "jwks"
    X5C = "x5c"
    KEY_FINDER = "key_finder"
    DECODE_PAYLOAD = "decode_payload"
    LEEWAY = "leeway"
    ALGORITHM_MATCHING = "algorithm_matching"
    CLAIMS_VALIDATOR = "claims_validator"
    VERIFY_EXPIRATION = "verify_expiration"
    VERIFY_NOT_BEFORE = "verify_not_before"
    ISSUER = "issuer"
    AUDIENCE = "audience"
    REQUIRED_CLAIMS = "required_claims"


_ALIASES: Final[dict[str, str]] = {"decode_payload_proc": "decode_payload"}

_ALGORITHM_KEYS: Final[tuple[object, ...]] = (
    "algorithm",
    Option.ALGORITHM,
    "algorithms",
    Option.ALGORITHMS,
)


@dataclass(frozen=True, slots=True)
class X5cOptions:
    """Trust material for ``x5c`` chain validation."""

    root_certificates: Sequence[x509.Certificate]
    crls: Sequence[x509.CertificateRevocationList] | None = None

    @classmethod
    def coerce(cls, value: Any) -> X5cOptions | None:
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(
                root_certificates=value.get("root_certificates") or (),
                crls=value.get("crls"),
            )
        raise TypeError(f"Invalid x5c option {value!r}")


@dataclass(frozen=True, slots=True)
class DecodeOptions:
    """Effective options for one decode call.

    Attributes:
        verify: Run algorithm, signature and claims checks. With False only the
            structure is decoded.
        algorithms: Allow-list. Must be non-empty when verifying.
        key: Static key, or a list of keys tried in order (rotation).
        jwks: JWKS mapping, ``PyJWKSet``, loader callable or ``JWKSKeyFinder``.
        x5c: Trust material for header certificate chains.
        key_finder: Registered key-resolver callback.
        decode_payload: Payload transform ``(raw, header, signature) -> str``.
        leeway: Clock skew tolerance in seconds, used by the claims validator.
        algorithm_matching: Identifier comparison mode.
        claims_validator: Object with ``validate(payload, options)``.
        verify_expiration: Check ``exp``.
        verify_not_before: Check ``nbf``.
        issuer: Expected ``iss`` (string or collection), None to skip.
        audience: Expected ``aud`` (string or collection), None to skip.
        required_claims: Claims that must be present.
    """

    verify: bool = True
    algorithms: tuple[Algorithm, ...] = ()
    key: Any = None
    jwks: Any = None
    x5c: X5cOptions | None = None
    key_finder: KeyFinder | None = None
    decode_payload: PayloadDecoder | None = None
    leeway: float = 0
    algorithm_matching: AlgorithmMatching = AlgorithmMatching.STRICT
    claims_validator: ClaimsValidatorProtocol = field(default_factory=StandardClaimsValidator)
    verify_expiration: bool = True
    verify_not_before: bool = True
    issuer: Any = None
    audience: Any = None
    required_claims: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, options: Mapping[Any, Any] | None = None) -> DecodeOptions:
        """Build the canonical record from a raw mapping.

        Raises:
            TypeError: On an unknown option name or a value of the wrong kind.
        """
        options = options or {}
        values = _canonical(options)

        for name in _ALGORITHM_KEYS:
            if name in options:
                values["algorithms"] = to_algorithms(options[name])
                break

        if "verify" in values:
            values["verify"] = bool(values["verify"])
        if "x5c" in values:
            values["x5c"] = X5cOptions.coerce(values["x5c"])
        if "key_finder" in values:
            finder = values["key_finder"]
            if finder is not None and not isinstance(finder, KeyFinder):
                raise TypeError(
                    "key_finder must be registered with KeyFinder.from_header() "
                    "or KeyFinder.from_header_and_payload()"
                )
        if "algorithm_matching" in values:
            values["algorithm_matching"] = AlgorithmMatching(values["algorithm_matching"])
        if values.get("claims_validator") is None:
            values.pop("claims_validator", None)
        if "leeway" in values:
            values["leeway"] = values["leeway"] or 0
        if "required_claims" in values:
            values["required_claims"] = tuple(values["required_claims"] or ())

        return cls(**values)


def _canonical(options: Mapping[Any, Any]) -> dict[str, Any]:
    """Resolve spellings: textual keys first, then Option members."""
    textual: dict[str, Any] = {}
    symbolic: dict[str, Any] = {}

    for raw_name, value in options.items():
        if isinstance(raw_name, Option):
            target, name = symbolic, raw_name.value
        elif isinstance(raw_name, str):
            target, name = textual, _ALIASES.get(raw_name, raw_name)
            try:
                Option(name)
            except ValueError:
                raise TypeError(f"Unknown decode option {raw_name!r}") from None
        else:
            raise TypeError(f"Unknown decode option {raw_name!r}")

        if name in ("algorithm", "algorithms"):
            continue
        target.setdefault(name, value)

    return symbolic | textual
