"""Pulling the raw token out of a Flask request.

Implementations of the Extractor protocol:
- HeaderExtractor: ``<Header>: <Scheme> <token>``; BearerExtractor is the
  ``Authorization: Bearer`` case and the default
- CookieExtractor: the value of a named cookie

Tokens in URLs are deliberately not supported (they end up in access logs).
"""

from __future__ import annotations

from flask import request

from .errors import MissingToken


class HeaderExtractor:
    """Reads ``<scheme> <token>`` from a request header.

    The scheme comparison is case-insensitive; the token itself is returned
    untouched apart from surrounding whitespace.

    Attributes:
        _header: Header name.
        _scheme: Expected authorization scheme.
    """

    def __init__(self, header: str = "Authorization", scheme: str = "Bearer") -> None:
        if not header.strip() or not scheme.strip():
            raise ValueError("header and scheme cannot be empty")
        self._header = header
        self._scheme = scheme

    def extract(self) -> str:
        """Return the token from the configured header.

        Raises:
            MissingToken: Header absent, malformed, wrong scheme, or empty token.
        """
        value = request.headers.get(self._header, "").strip()
        if not value:
            raise MissingToken(f"Missing {self._header} header")

        scheme, _, token = value.partition(" ")
        if not token:
            raise MissingToken(
                f"Invalid {self._header} header format (expected '{self._scheme} <token>')"
            )
        if scheme.lower() != self._scheme.lower():
            raise MissingToken(f"Invalid authorization scheme (expected '{self._scheme}')")

        token = token.strip()
        if not token:
            raise MissingToken(f"{self._scheme} token is empty")
        return token


class BearerExtractor(HeaderExtractor):
    """``Authorization: Bearer <token>``."""

    def __init__(self) -> None:
        super().__init__("Authorization", "Bearer")


class CookieExtractor:
    """Reads the token from a cookie.

    Cookie-borne tokens need HttpOnly, Secure and SameSite on the cookie and
    CSRF protection on state-changing routes; none of that is checked here.
    """

    def __init__(self, cookie_name: str = "access_token") -> None:
        if not cookie_name or not cookie_name.strip():
            raise ValueError("cookie_name cannot be empty")
        self._name = cookie_name

    def extract(self) -> str:
        token = request.cookies.get(self._name)
        if not token:
            raise MissingToken(f"Missing cookie '{self._name}'")
        return token
