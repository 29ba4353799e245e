"""Decoder defaults from the environment.

Reads a ``.env`` file (if present) with python-dotenv, then the process
environment:

- ``JWT_ALGORITHMS``: comma-separated allow-list, e.g. ``RS256,ES256``
- ``JWT_VERIFICATION_KEY``: shared secret or PEM public key
- ``JWT_VERIFICATION_KEY_FILE``: path to a PEM file (used if the key is unset)
- ``JWT_LEEWAY``: clock skew tolerance in seconds
- ``JWT_ALGORITHM_MATCHING``: ``strict`` (default) or ``legacy``
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from .algorithms import AlgorithmMatching
from .decoder import DecoderDefaults


def load_defaults_from_env(
    environ: Mapping[str, str] | None = None,
    *,
    prefix: str = "JWT_",
    dotenv: bool = True,
) -> DecoderDefaults:
    """Build DecoderDefaults from environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ``.
        prefix: Variable name prefix.
        dotenv: Load a ``.env`` file into ``os.environ`` first.

    Raises:
        ValueError: On a malformed leeway or matching mode.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    env = os.environ if environ is None else environ

    algorithms = tuple(
        a.strip() for a in env.get(f"{prefix}ALGORITHMS", "").split(",") if a.strip()
    )

    key: str | bytes | None = env.get(f"{prefix}VERIFICATION_KEY") or None
    key_file = env.get(f"{prefix}VERIFICATION_KEY_FILE")
    if key is None and key_file:
        key = Path(key_file).read_bytes()

    leeway = float(env.get(f"{prefix}LEEWAY", "0") or 0)
    matching = AlgorithmMatching(env.get(f"{prefix}ALGORITHM_MATCHING", "strict").lower())

    return DecoderDefaults(
        algorithms=algorithms,
        verification_key=key,
        expiration_leeway=leeway,
        algorithm_matching=matching,
    )
