"""Flask integration for decoding request tokens.

Key Components:
- AuthExtension: decorator factory protecting Flask routes
- decode_cookie_token: one-off decoding of a token kept in a cookie

Request flow:
1. Extract token from request (header or cookie)
2. Decode and verify it with the configured TokenDecoder
3. Store payload in ``flask.g.jwt`` and header in ``flask.g.jwt_header``
4. Convert AuthError to its HTTP status (401)
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Final

from flask import Flask, abort, g, request

from .errors import AuthError
from .extractors import BearerExtractor

if TYPE_CHECKING:
    from collections.abc import Callable

    from .protocols import Extractor, Payload, TokenDecoder, ViewFunc

logger = logging.getLogger(__name__)

_EXT_KEY: Final[str] = "jwt_decoding"
"""Flask extensions registry key for AuthExtension."""


class AuthExtension:
    """
    Flask decorator glue for JWT decoding.

    Responsibilities:
    - Extract token from request
    - Decode and verify it (TokenDecoder)
    - Expose payload and header on ``flask.g``
    - Convert domain errors to HTTP responses (abort)

    Usage:
        auth = AuthExtension(JWTDecoder(defaults))

        @app.get("/reports")
        @auth.require(audience="reports-api")
        def reports(): ...
    """

    def __init__(
        self,
        decoder: TokenDecoder,
        extractor: Extractor | None = None,
    ) -> None:
        self._decoder: TokenDecoder = decoder
        self._extractor: Extractor = extractor or BearerExtractor()

    def init_app(
        self,
        app: Flask,
        *,
        decoder: TokenDecoder | None = None,
        extractor: Extractor | None = None,
    ) -> None:
        """Register the extension on ``app``, optionally swapping collaborators."""
        if decoder is not None:
            self._decoder = decoder
        if extractor is not None:
            self._extractor = extractor

        app.extensions[_EXT_KEY] = self

    def require(self, **options: Any) -> Callable[[ViewFunc], ViewFunc]:
        """Decorator requiring a valid token for the wrapped view.

        Keyword arguments are passed to ``decoder.decode`` as call-site
        options (for example ``audience=...`` or ``algorithms=[...]``).

        Error mapping:
        - ``AuthError`` -> its ``error_code`` with its ``description``
        - anything else -> HTTP 401 ("Authentication failed")
        """

        def decorator(view: ViewFunc) -> ViewFunc:
            @wraps(view)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    token = self._extractor.extract()
                    payload, header = self._decoder.decode(token, **options)
                except AuthError as e:
                    logger.info("Rejected token on %s: %s", request.path, type(e).__name__)
                    abort(e.error_code, description=e.description)
                except Exception:
                    logger.exception("Unexpected error while decoding token")
                    abort(401, description="Authentication failed")

                g.jwt = payload
                g.jwt_header = header
                return view(*args, **kwargs)

            return wrapper

        return decorator


def decode_cookie_token(
    decoder: TokenDecoder,
    *,
    cookie_name: str = "id_token",
    **options: Any,
) -> Payload:
    """
    Return the decoded payload of a token stored in a cookie.

    Aborts with 401 when the cookie is missing or the token is rejected.
    """
    token = request.cookies.get(cookie_name)
    if not token:
        abort(401, description="Missing token")
    try:
        payload, _header = decoder.decode(token, **options)
    except AuthError as e:
        abort(e.error_code, description=e.description)
    except Exception:
        logger.exception("Unexpected error while decoding cookie token")
        abort(401, description="Authentication failed")
    return payload
