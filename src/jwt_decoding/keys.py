"""Verification key resolution.

``KeyOrchestrator`` picks exactly one key source per call, in this order:

1. ``jwks``: lookup by the header's ``kid``
2. ``x5c``: validate the header's certificate chain against trusted roots
3. ``key_finder``: a caller-registered callback
4. ``key``: a static key, or a list of keys for rotation

Whatever the source returns is normalized to a list of candidates.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .errors import KeyResolutionError
from .jwks import JWKSKeyFinder
from .x5c import X5cKeyFinder

if TYPE_CHECKING:
    from .options import DecodeOptions
    from .protocols import Header, Payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KeyFinder:
    """A key-resolver callback tagged with the arguments it consumes.

    The arity is fixed when the callback is registered; it is never
    discovered by inspecting the function.

    Example:
        ```python
        by_kid = KeyFinder.from_header(lambda header: keys[header["kid"]])
        by_tenant = KeyFinder.from_header_and_payload(
            lambda header, payload: tenant_keys[payload["tenant"]]
        )
        ```
    """

    func: Callable[..., Any]
    with_payload: bool = False

    @classmethod
    def from_header(cls, func: Callable[[Header], Any]) -> KeyFinder:
        return cls(func, with_payload=False)

    @classmethod
    def from_header_and_payload(cls, func: Callable[[Header, Payload], Any]) -> KeyFinder:
        return cls(func, with_payload=True)

    def __call__(self, header: Header, payload: Payload) -> Any:
        if self.with_payload:
            return self.func(header, payload)
        return self.func(header)


def normalize_keys(value: Any) -> list[Any]:
    """Turn a resolved key value into a list of candidates."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class KeyOrchestrator:
    """Resolves candidate verification keys for one decode call."""

    def __init__(self, options: DecodeOptions) -> None:
        self._options = options

    def resolve(self, header: Header, payload: Payload) -> list[Any]:
        """Resolve candidates synchronously.

        Raises:
            KeyResolutionError: If the source yields no key at all.
            TypeError: If the source is asynchronous.
        """
        jwks = self._jwks_finder()
        if jwks is not None:
            value = jwks.key_for(header.get("kid"))
        else:
            value = self._resolve_other(header, payload)
            if inspect.isawaitable(value):
                close = getattr(value, "close", None)
                if close is not None:
                    close()
                raise TypeError("Key finder is asynchronous; use decode_async()")
        return self._candidates(value)

    async def resolve_async(self, header: Header, payload: Payload) -> list[Any]:
        """Resolve candidates, awaiting asynchronous sources to completion."""
        jwks = self._jwks_finder()
        if jwks is not None:
            value = await jwks.key_for_async(header.get("kid"))
        else:
            value = self._resolve_other(header, payload)
            if inspect.isawaitable(value):
                value = await value
        return self._candidates(value)

    def _jwks_finder(self) -> JWKSKeyFinder | None:
        jwks = self._options.jwks
        if jwks is None:
            return None
        if isinstance(jwks, JWKSKeyFinder):
            return jwks
        return JWKSKeyFinder(jwks)

    def _resolve_other(self, header: Header, payload: Payload) -> Any:
        opts = self._options
        if opts.x5c is not None:
            finder = X5cKeyFinder(opts.x5c.root_certificates, opts.x5c.crls)
            return finder.from_chain(header.get("x5c"))
        if opts.key_finder is not None:
            return opts.key_finder(header, payload)
        return opts.key

    @staticmethod
    def _candidates(value: Any) -> list[Any]:
        keys = normalize_keys(value)
        if not keys:
            raise KeyResolutionError("No verification key available")
        logger.debug("Resolved %d candidate key(s)", len(keys))
        return keys
