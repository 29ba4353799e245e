"""Token segmentation and segment decoding.

A compact JWT is ``<header>.<payload>[.<signature>]`` where every segment is
base64url without padding. Decoding is strict: any character outside the
url-safe alphabet, bad padding or invalid JSON is reported as a single
``DecodeError("Invalid segment encoding")``. Callers never see the codec's own
exception types.
"""

from __future__ import annotations

import binascii
import json
import re
from typing import TYPE_CHECKING, Any, Final

from jwt.utils import base64url_decode

from .errors import DecodeError

if TYPE_CHECKING:
    from .algorithms import AlgorithmMatching
    from .protocols import Header, Payload, PayloadDecoder

_BASE64URL: Final = re.compile(r"[A-Za-z0-9_-]*")
"""Url-safe base64 alphabet, without padding."""

VALID_SEGMENT_COUNTS: Final[frozenset[int]] = frozenset({2, 3})


def split_token(token: object) -> list[str]:
    """Split a compact token into its raw segments.

    Raises:
        DecodeError: If ``token`` is not a non-empty string.
    """
    if not isinstance(token, str):
        raise DecodeError("Provided token is not a string")
    if not token:
        raise DecodeError("Nil JSON web token")
    return token.split(".")


def validate_segment_count(
    segments: list[str],
    *,
    verify: bool,
    alg: object,
    matching: AlgorithmMatching,
) -> None:
    """Check the segment count against the verify flag and declared alg.

    Three segments are always acceptable. Two segments are acceptable only
    for unverified decoding or an unsigned (``none``) token.
    """
    count = len(segments)
    if count == 3:
        return
    if count == 2 and (not verify or matching.same(alg, "none")):
        return
    raise DecodeError("Not enough or too many segments")


def _b64decode(raw_segment: str) -> bytes:
    if not isinstance(raw_segment, str) or not _BASE64URL.fullmatch(raw_segment):
        raise DecodeError("Invalid segment encoding")
    try:
        return base64url_decode(raw_segment)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("Invalid segment encoding") from e


def decode_segment(raw_segment: str) -> Any:
    """Base64url-decode then JSON-parse a single segment."""
    data = _b64decode(raw_segment)
    try:
        return json.loads(data)
    except ValueError as e:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise DecodeError("Invalid segment encoding") from e


def decode_header(raw_segment: str) -> Header:
    header = decode_segment(raw_segment)
    if not isinstance(header, dict):
        raise DecodeError("Invalid header: must be a JSON object")
    return header


def decode_payload(
    raw_segment: str,
    header: Header,
    signature: bytes,
    transform: PayloadDecoder | None = None,
) -> Payload:
    """Decode the payload segment, optionally through a transform.

    The transform receives the raw segment, the decoded header and the raw
    signature bytes, and returns a base64url-encoded JSON string that is
    parsed exactly like an untransformed segment. The header has no such hook.
    """
    if transform is not None:
        raw_segment = transform(raw_segment, header, signature)
    return decode_segment(raw_segment)


def decode_signature(raw_segment: str | None) -> bytes:
    """Decode the signature segment; an absent segment yields ``b""``."""
    if not raw_segment:
        return b""
    return _b64decode(raw_segment)
