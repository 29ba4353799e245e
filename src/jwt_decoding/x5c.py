"""Key resolution from an ``x5c`` certificate chain header.

The header carries the signing certificate first, followed by the
certificates that issued it. The chain is accepted only if every link is
signed by the next one, it ends at one of the caller's trusted roots, every
certificate (the trusted root included) is inside its validity window, and
(when revocation lists are configured) no certificate is revoked by its
issuer.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm

from .errors import KeyResolutionError

logger = logging.getLogger(__name__)


class _ChainError(Exception):
    def __init__(self, reason: str, certificate: x509.Certificate) -> None:
        super().__init__(reason)
        self.reason = reason
        self.certificate = certificate


class X5cKeyFinder:
    """Validates an x5c chain and returns the signing certificate's public key.

    Args:
        root_certificates: Trusted anchors.
        crls: Optional revocation lists. When given, every certificate in the
            chain must be covered by a valid list from its issuer.

    Raises:
        ValueError: If no root certificates are given.
    """

    def __init__(
        self,
        root_certificates: Sequence[x509.Certificate],
        crls: Sequence[x509.CertificateRevocationList] | None = None,
    ) -> None:
        if not root_certificates:
            raise ValueError("Root certificates must be specified")
        self._roots = list(root_certificates)
        self._crls = list(crls) if crls else []

    def from_chain(self, x5c: Any, *, now: datetime | None = None) -> Any:
        """Validate ``x5c`` and return the leaf public key.

        Raises:
            KeyResolutionError: If the header is malformed or the chain does
                not validate.
        """
        chain = self._parse(x5c)
        now = now or datetime.now(UTC)
        try:
            self._verify_chain(chain, now)
        except _ChainError as e:
            subject = e.certificate.subject.rfc4514_string()
            logger.debug("x5c chain rejected: %s (%s)", e.reason, subject)
            raise KeyResolutionError(
                f"Certificate verification failed: {e.reason}. "
                f"Certificate subject: {subject}."
            ) from e
        return chain[0].public_key()

    def _parse(self, x5c: Any) -> list[x509.Certificate]:
        if not isinstance(x5c, list) or not x5c:
            raise KeyResolutionError("x5c header must be a non-empty list")
        chain = []
        for encoded in x5c:
            if not isinstance(encoded, str):
                raise KeyResolutionError("Invalid x5c certificate encoding")
            try:
                chain.append(
                    x509.load_der_x509_certificate(base64.b64decode(encoded, validate=True))
                )
            except (binascii.Error, ValueError) as e:
                raise KeyResolutionError("Invalid x5c certificate encoding") from e
        return chain

    def _verify_chain(self, chain: list[x509.Certificate], now: datetime) -> None:
        for index, cert in enumerate(chain):
            self._check_validity(cert, now)

            if cert in self._roots:
                return

            if index + 1 < len(chain):
                issuer = chain[index + 1]
                if not self._issued_by(cert, issuer):
                    raise _ChainError("certificate signature failure", cert)
                if not _is_ca(issuer):
                    raise _ChainError("invalid CA certificate", issuer)
            else:
                issuer = next((r for r in self._roots if self._issued_by(cert, r)), None)
                if issuer is None:
                    raise _ChainError("unable to get local issuer certificate", cert)

            if self._crls:
                self._check_revocation(cert, issuer, now)

            if issuer in self._roots:
                self._check_validity(issuer, now)
                return

    @staticmethod
    def _check_validity(cert: x509.Certificate, now: datetime) -> None:
        if now < cert.not_valid_before_utc:
            raise _ChainError("certificate is not yet valid", cert)
        if now > cert.not_valid_after_utc:
            raise _ChainError("certificate has expired", cert)

    @staticmethod
    def _issued_by(cert: x509.Certificate, issuer: x509.Certificate) -> bool:
        try:
            cert.verify_directly_issued_by(issuer)
        except (ValueError, TypeError, InvalidSignature, UnsupportedAlgorithm):
            return False
        return True

    def _check_revocation(
        self,
        cert: x509.Certificate,
        issuer: x509.Certificate,
        now: datetime,
    ) -> None:
        crl = next(
            (
                c
                for c in self._crls
                if c.issuer == issuer.subject and c.is_signature_valid(issuer.public_key())
            ),
            None,
        )
        if crl is None:
            raise _ChainError("unable to get certificate CRL", cert)
        if crl.next_update_utc is not None and now > crl.next_update_utc:
            raise _ChainError("CRL has expired", cert)
        if crl.get_revoked_certificate_by_serial_number(cert.serial_number) is not None:
            raise _ChainError("certificate revoked", cert)


def _is_ca(cert: x509.Certificate) -> bool:
    try:
        constraints = cert.extensions.get_extension_for_class(x509.BasicConstraints)
    except x509.ExtensionNotFound:
        return False
    return constraints.value.ca
