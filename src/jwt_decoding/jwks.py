"""JWKS key resolution by ``kid``.

The key set is supplied by the caller in one of three forms:

- a JWKS mapping (``{"keys": [...]}``),
- a ``jwt.PyJWKSet``,
- a loader callable ``loader(*, kid, invalidate=False, kid_not_found=False)``
  returning either of the above (or an awaitable of it).

Fetching a remote JWKS is the loader's business; this module never performs
network I/O itself. When a loader is used and the requested ``kid`` is not in
the current set, the loader is called once more with ``invalidate=True`` and
``kid_not_found=True`` so it can refresh. That second call is throttled by a
``RefreshGate``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

from jwt import PyJWK, PyJWKSet
from jwt.exceptions import PyJWKSetError

from .errors import KeyResolutionError
from .refresh_gate import RefreshGate

logger = logging.getLogger(__name__)

JWKSLoader: TypeAlias = Callable[..., Any]


def to_key_set(value: Any) -> PyJWKSet:
    """Build a PyJWKSet from a mapping or pass an existing set through.

    Raises:
        KeyResolutionError: If the set is malformed or has no usable keys.
    """
    if isinstance(value, PyJWKSet):
        return value
    if isinstance(value, Mapping):
        try:
            return PyJWKSet.from_dict(dict(value))
        except PyJWKSetError as e:
            raise KeyResolutionError("No keys found in jwks") from e
    raise KeyResolutionError("No keys found in jwks")


class JWKSKeyFinder:
    """Resolves the verification key named by a token's ``kid`` header.

    A finder built around a loader keeps the last loaded set and reuses it
    across calls, so one instance should be shared (pass it as the ``jwks``
    option) when the loader is expensive. Replacing the cached set is a
    single reference assignment.

    Example:
        ```python
        finder = JWKSKeyFinder({"keys": [rsa_public_jwk]})
        key = finder.key_for("my-kid")
        ```

    Args:
        jwks: Key set or loader, see module docstring.
        allow_nil_kid: Accept tokens without ``kid`` and use the first key.
        gate: Throttle for reloads on unknown kids.
    """

    def __init__(
        self,
        jwks: Mapping[str, Any] | PyJWKSet | JWKSLoader,
        *,
        allow_nil_kid: bool = False,
        gate: RefreshGate | None = None,
    ) -> None:
        self._loader: JWKSLoader | None = None
        self._key_set: PyJWKSet | None = None
        self._source: Any = None

        if callable(jwks) and not isinstance(jwks, (Mapping, PyJWKSet)):
            self._loader = jwks
        else:
            self._source = jwks
        self._allow_nil_kid = allow_nil_kid
        self._gate = gate or RefreshGate()

    def key_for(self, kid: object) -> Any:
        """Return the key for ``kid`` from the (possibly reloaded) set.

        Raises:
            KeyResolutionError: If ``kid`` is missing or malformed, the set is
                empty, or no key matches.
        """
        self._check_kid(kid)

        if self._key_set is None:
            self._key_set = to_key_set(self._load(kid=kid))
        jwk = self._match(kid)

        if jwk is None and self._should_reload(kid):
            self._key_set = to_key_set(
                self._load(kid=kid, invalidate=True, kid_not_found=True)
            )
            jwk = self._match(kid)

        return self._key_of(jwk, kid)

    async def key_for_async(self, kid: object) -> Any:
        """Same as key_for, awaiting a coroutine loader."""
        self._check_kid(kid)

        if self._key_set is None:
            self._key_set = to_key_set(await self._load_async(kid=kid))
        jwk = self._match(kid)

        if jwk is None and self._should_reload(kid):
            self._key_set = to_key_set(
                await self._load_async(kid=kid, invalidate=True, kid_not_found=True)
            )
            jwk = self._match(kid)

        return self._key_of(jwk, kid)

    def _check_kid(self, kid: object) -> None:
        if kid is None and not self._allow_nil_kid:
            raise KeyResolutionError("No key id (kid) found from token headers")
        if kid is not None and not isinstance(kid, str):
            raise KeyResolutionError("Invalid type for kid header parameter")

    def _load(self, **kwargs: Any) -> Any:
        if self._loader is None:
            return self._source
        result = self._loader(**kwargs)
        if inspect.isawaitable(result):
            # close the coroutine so it is not reported as never awaited
            close = getattr(result, "close", None)
            if close is not None:
                close()
            raise TypeError("JWKS loader is asynchronous; use decode_async()")
        return result

    async def _load_async(self, **kwargs: Any) -> Any:
        if self._loader is None:
            return self._source
        result = self._loader(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _should_reload(self, kid: object) -> bool:
        if self._loader is None:
            return False
        if not self._gate.allow():
            logger.info("JWKS reload for kid %r throttled", kid)
            return False
        logger.debug("kid %r not in key set; reloading", kid)
        return True

    def _match(self, kid: object) -> PyJWK | None:
        if self._key_set is None:
            return None
        for jwk in self._key_set.keys:
            if (kid is None and self._allow_nil_kid) or jwk.key_id == kid:
                return jwk
        return None

    def _key_of(self, jwk: PyJWK | None, kid: object) -> Any:
        if self._key_set is None or not self._key_set.keys:
            raise KeyResolutionError("No keys found in jwks")
        if jwk is None:
            raise KeyResolutionError(f"Could not find public key for kid {kid}")
        return jwk.key
