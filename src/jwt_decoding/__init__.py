"""
JWT decoding and verification.

Decode flow (per call)
----------------------
1. The token is split into segments; header and payload are always decoded
   (base64url + JSON), even with verification disabled.
2. The segment count is checked: three segments, or two for an unverified or
   ``none`` token.
3. The header's ``alg`` is negotiated against the caller's allow-list.
4. Candidate keys are resolved from exactly one source: JWKS by ``kid``,
   an ``x5c`` certificate chain, a registered KeyFinder callback, or a
   static key (or list of keys, for rotation).
5. Every (algorithm, key) candidate is tried until one verifies.
6. Claims are validated (``exp``, ``nbf``, optional ``iss``/``aud``).

Security notes
--------------
- ``none`` is never accepted unless it is listed explicitly.
- The allow-list must be non-empty whenever verification is on.
- Failure messages do not reveal which key or algorithm was tried.

Example usage
-------------

.. code-block:: python

    from jwt_decoding import DecoderDefaults, JWTDecoder, KeyFinder

    decoder = JWTDecoder(DecoderDefaults(algorithm="HS256", verification_key="s3cr3t"))
    payload, header = decoder.decode(token)

    # key rotation
    payload, header = decoder.decode(token, key=["new-secret", "old-secret"])

    # resolver callback that needs the payload
    finder = KeyFinder.from_header_and_payload(lambda h, p: tenant_keys[p["tenant"]])
    payload, header = decoder.decode(token, key_finder=finder)
"""

# Algorithms
from .algorithms import (
    AlgorithmMatching,
    AlgorithmNegotiator,
    CapabilityAlgorithm,
    IdentifierAlgorithm,
    to_algorithm,
)

# Claims
from .claims import StandardClaimsValidator

# Configuration
from .config import load_defaults_from_env

# Decoder
from .decoder import DecoderDefaults, JWTDecoder, build_decode_options, decode

# Errors
from .errors import (
    AuthError,
    DecodeError,
    ExpiredToken,
    ImmatureSignature,
    IncorrectAlgorithm,
    InvalidAudience,
    InvalidIssuer,
    InvalidToken,
    KeyResolutionError,
    MissingRequiredClaim,
    MissingToken,
    VerificationError,
)

# Extractors
from .extractors import BearerExtractor, CookieExtractor, HeaderExtractor

# Flask extension
from .flask_extension import AuthExtension, decode_cookie_token

# Key resolution
from .jwks import JWKSKeyFinder
from .keys import KeyFinder, KeyOrchestrator
from .x5c import X5cKeyFinder

# Options
from .options import DecodeOptions, Option, X5cOptions

# Pipeline
from .pipeline import DecodeContext, DecodePipeline, DecodeState

# Protocols
from .protocols import (
    Claims,
    ClaimsValidatorProtocol,
    Extractor,
    Header,
    Payload,
    PayloadDecoder,
    SigningAlgorithm,
    TokenDecoder,
    ViewFunc,
)

# Refresh gate
from .refresh_gate import RefreshGate

# Signature
from .signature import SignatureEngine, SignatureVerifier

__all__ = [
    # Errors
    "AuthError",
    "DecodeError",
    "ExpiredToken",
    "ImmatureSignature",
    "IncorrectAlgorithm",
    "InvalidAudience",
    "InvalidIssuer",
    "InvalidToken",
    "KeyResolutionError",
    "MissingRequiredClaim",
    "MissingToken",
    "VerificationError",
    # Protocols
    "Claims",
    "ClaimsValidatorProtocol",
    "Extractor",
    "Header",
    "Payload",
    "PayloadDecoder",
    "SigningAlgorithm",
    "TokenDecoder",
    "ViewFunc",
    # Algorithms
    "AlgorithmMatching",
    "AlgorithmNegotiator",
    "CapabilityAlgorithm",
    "IdentifierAlgorithm",
    "to_algorithm",
    # Signature
    "SignatureEngine",
    "SignatureVerifier",
    # Key resolution
    "JWKSKeyFinder",
    "KeyFinder",
    "KeyOrchestrator",
    "X5cKeyFinder",
    "RefreshGate",
    # Options
    "DecodeOptions",
    "Option",
    "X5cOptions",
    # Claims
    "StandardClaimsValidator",
    # Pipeline
    "DecodeContext",
    "DecodePipeline",
    "DecodeState",
    # Decoder
    "DecoderDefaults",
    "JWTDecoder",
    "build_decode_options",
    "decode",
    "load_defaults_from_env",
    # Flask integration
    "AuthExtension",
    "BearerExtractor",
    "CookieExtractor",
    "HeaderExtractor",
    "decode_cookie_token",
]
