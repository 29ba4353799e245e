import base64
import json
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID
from flask import Flask
from jwt import PyJWK
from jwt.algorithms import get_default_algorithms
from jwt.utils import base64url_encode


def _b64json(value: Any) -> str:
    raw = json.dumps(value, separators=(",", ":")).encode("utf-8")
    return base64url_encode(raw).decode("ascii")


def build_token(
    header: dict[str, Any],
    payload: Any,
    key: Any = None,
    *,
    signature: bytes | None = None,
) -> str:
    """Compact token signed with the header's alg (or given a raw signature)."""
    signing_input = f"{_b64json(header)}.{_b64json(payload)}"
    if signature is None:
        alg = get_default_algorithms()[header["alg"]]
        signature = alg.sign(signing_input.encode("ascii"), alg.prepare_key(key))
    return f"{signing_input}.{base64url_encode(signature).decode('ascii')}"


def build_unsigned(header: dict[str, Any], payload: Any) -> str:
    """Two-segment token with no signature segment at all."""
    return f"{_b64json(header)}.{_b64json(payload)}"


@pytest.fixture()
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def secret() -> str:
    return "s3cr3t"


@pytest.fixture
def make_token():
    """
    Factory fixture returning build_token.

    Usage in tests:
        token = make_token({"alg": "HS256"}, {"sub": "u1"}, "s3cr3t")
    """
    return build_token


@pytest.fixture
def make_unsigned():
    return build_unsigned


@pytest.fixture
def make_oct_jwk():
    """
    Factory fixture that returns a function.

    Usage in tests:
        jwk = make_oct_jwk(kid="k1")
    """

    def _make(*, kid: str = "kid1", secret: bytes = b"supersecret") -> dict[str, str]:
        return {
            "kty": "oct",
            "kid": kid,
            "k": base64url_encode(secret).decode("ascii"),
            "alg": "HS256",
            "use": "sig",
        }

    return _make


@pytest.fixture
def oct_pyjwk(make_oct_jwk) -> PyJWK:
    return PyJWK.from_dict(make_oct_jwk(kid="k1"))


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


# ----------------------------------------------------------------------------
# X.509
# ----------------------------------------------------------------------------


def _name(cn: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, cn)])


class CertFactory:
    """Builds small EC certificate hierarchies for chain tests."""

    def __init__(self) -> None:
        self.now = datetime.now(UTC)

    def key(self) -> ec.EllipticCurvePrivateKey:
        return ec.generate_private_key(ec.SECP256R1())

    def cert(
        self,
        subject: str,
        public_key: Any,
        *,
        issuer: str | None = None,
        issuer_key: Any,
        ca: bool,
        not_before: datetime | None = None,
        not_after: datetime | None = None,
    ) -> x509.Certificate:
        return (
            x509.CertificateBuilder()
            .subject_name(_name(subject))
            .issuer_name(_name(issuer or subject))
            .public_key(public_key)
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before or self.now - timedelta(days=1))
            .not_valid_after(not_after or self.now + timedelta(days=1))
            .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
            .sign(issuer_key, hashes.SHA256())
        )

    def crl(
        self,
        issuer: str,
        issuer_key: Any,
        revoked: list[x509.Certificate] = (),
        *,
        next_update: datetime | None = None,
    ) -> x509.CertificateRevocationList:
        builder = (
            x509.CertificateRevocationListBuilder()
            .issuer_name(_name(issuer))
            .last_update(self.now - timedelta(hours=1))
            .next_update(next_update or self.now + timedelta(days=1))
        )
        for cert in revoked:
            builder = builder.add_revoked_certificate(
                x509.RevokedCertificateBuilder()
                .serial_number(cert.serial_number)
                .revocation_date(self.now - timedelta(minutes=5))
                .build()
            )
        return builder.sign(issuer_key, hashes.SHA256())

    @staticmethod
    def encode(cert: x509.Certificate) -> str:
        from cryptography.hazmat.primitives.serialization import Encoding

        return base64.b64encode(cert.public_bytes(Encoding.DER)).decode("ascii")


@pytest.fixture
def certs() -> CertFactory:
    return CertFactory()


@pytest.fixture
def pki(certs: CertFactory) -> dict[str, Any]:
    """Root -> intermediate -> leaf, all EC P-256."""
    root_key, inter_key, leaf_key = certs.key(), certs.key(), certs.key()
    root = certs.cert("Root CA", root_key.public_key(), issuer_key=root_key, ca=True)
    inter = certs.cert(
        "Intermediate CA", inter_key.public_key(), issuer="Root CA", issuer_key=root_key, ca=True
    )
    leaf = certs.cert(
        "Signer", leaf_key.public_key(), issuer="Intermediate CA", issuer_key=inter_key, ca=False
    )
    return {
        "root": root,
        "root_key": root_key,
        "inter": inter,
        "inter_key": inter_key,
        "leaf": leaf,
        "leaf_key": leaf_key,
        "x5c": [certs.encode(leaf), certs.encode(inter)],
    }
