import pytest

import jwt_decoding as m


def test_defaults_from_mapping():
    defaults = m.load_defaults_from_env(
        {
            "JWT_ALGORITHMS": "RS256, ES256,,",
            "JWT_VERIFICATION_KEY": "s3cr3t",
            "JWT_LEEWAY": "30",
            "JWT_ALGORITHM_MATCHING": "LEGACY",
        },
        dotenv=False,
    )

    assert defaults.algorithms == ("RS256", "ES256")
    assert defaults.verification_key == "s3cr3t"
    assert defaults.expiration_leeway == 30.0
    assert defaults.algorithm_matching is m.AlgorithmMatching.LEGACY


def test_empty_environment():
    defaults = m.load_defaults_from_env({}, dotenv=False)

    assert defaults.algorithms == ()
    assert defaults.verification_key is None
    assert defaults.expiration_leeway == 0
    assert defaults.algorithm_matching is m.AlgorithmMatching.STRICT


def test_key_file(tmp_path):
    pem = tmp_path / "key.pem"
    pem.write_bytes(b"-----BEGIN PUBLIC KEY-----\n...")

    defaults = m.load_defaults_from_env({"JWT_VERIFICATION_KEY_FILE": str(pem)}, dotenv=False)

    assert defaults.verification_key == b"-----BEGIN PUBLIC KEY-----\n..."


def test_inline_key_wins_over_file(tmp_path):
    pem = tmp_path / "key.pem"
    pem.write_bytes(b"file")

    defaults = m.load_defaults_from_env(
        {"JWT_VERIFICATION_KEY": "inline", "JWT_VERIFICATION_KEY_FILE": str(pem)},
        dotenv=False,
    )

    assert defaults.verification_key == "inline"


def test_custom_prefix():
    defaults = m.load_defaults_from_env({"AUTH_ALGORITHMS": "HS256"}, prefix="AUTH_", dotenv=False)
    assert defaults.algorithms == ("HS256",)


@pytest.mark.parametrize(
    "env", [{"JWT_LEEWAY": "soon"}, {"JWT_ALGORITHM_MATCHING": "loose"}]
)
def test_malformed_values(env):
    with pytest.raises(ValueError):
        m.load_defaults_from_env(env, dotenv=False)


def test_reads_dotenv_file(tmp_path, monkeypatch: pytest.MonkeyPatch):
    (tmp_path / ".env").write_text("JWT_ALGORITHMS=HS512\n")
    monkeypatch.chdir(tmp_path)
    # registered first so teardown removes the value loaded from .env
    monkeypatch.setenv("JWT_ALGORITHMS", "unset")
    monkeypatch.delenv("JWT_ALGORITHMS")

    defaults = m.load_defaults_from_env()

    assert defaults.algorithms == ("HS512",)


def test_decoder_from_environment(make_token):
    defaults = m.load_defaults_from_env(
        {"JWT_ALGORITHMS": "HS256", "JWT_VERIFICATION_KEY": "s3cr3t"}, dotenv=False
    )
    token = make_token({"alg": "HS256"}, {"sub": "u1"}, "s3cr3t")

    assert m.JWTDecoder(defaults).decode(token)[0] == {"sub": "u1"}
