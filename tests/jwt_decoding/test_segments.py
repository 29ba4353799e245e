import pytest

import jwt_decoding as m
from jwt_decoding.segments import (
    decode_header,
    decode_payload,
    decode_segment,
    decode_signature,
    split_token,
    validate_segment_count,
)

STRICT = m.AlgorithmMatching.STRICT
LEGACY = m.AlgorithmMatching.LEGACY


def test_split_token_rejects_non_string():
    with pytest.raises(m.DecodeError, match="not a string"):
        split_token(b"a.b.c")  # type: ignore[arg-type]


def test_split_token_rejects_empty():
    with pytest.raises(m.DecodeError, match="Nil JSON web token"):
        split_token("")


def test_split_token_keeps_empty_signature_segment():
    assert split_token("a.b.") == ["a", "b", ""]


class TestSegmentCount:
    def test_three_segments_always_ok(self):
        validate_segment_count(["a", "b", "c"], verify=True, alg="HS256", matching=STRICT)

    def test_two_segments_ok_without_verification(self):
        validate_segment_count(["a", "b"], verify=False, alg="HS256", matching=STRICT)

    def test_two_segments_ok_for_none(self):
        validate_segment_count(["a", "b"], verify=True, alg="none", matching=STRICT)

    def test_two_segments_rejected_for_signed_alg(self):
        with pytest.raises(m.DecodeError, match="Not enough or too many segments"):
            validate_segment_count(["a", "b"], verify=True, alg="HS256", matching=STRICT)

    def test_none_case_depends_on_matching_mode(self):
        with pytest.raises(m.DecodeError):
            validate_segment_count(["a", "b"], verify=True, alg="NONE", matching=STRICT)
        validate_segment_count(["a", "b"], verify=True, alg="NONE", matching=LEGACY)

    @pytest.mark.parametrize("segments", [["a"], ["a", "b", "c", "d"]])
    def test_other_counts_rejected(self, segments):
        for verify in (True, False):
            with pytest.raises(m.DecodeError):
                validate_segment_count(segments, verify=verify, alg="none", matching=LEGACY)


class TestSegmentDecoding:
    def test_decode_segment(self):
        assert decode_segment("eyJwYXkiOiJsb2FkIn0") == {"pay": "load"}

    @pytest.mark.parametrize(
        "raw",
        [
            "eyJwYXkiOiJsb2FkIn0=",  # padding is not base64url
            "eyJwYXkiOi+sb2FkIn0",  # standard alphabet
            "e",  # impossible length
            "bm90IGpzb24",  # "not json"
            "",
        ],
    )
    def test_decode_segment_failures_are_uniform(self, raw):
        with pytest.raises(m.DecodeError, match="Invalid segment encoding"):
            decode_segment(raw)

    def test_header_must_be_an_object(self):
        # "[1]" encoded
        with pytest.raises(m.DecodeError, match="JSON object"):
            decode_header("WzFd")

    def test_payload_may_be_any_json(self):
        assert decode_payload("WzFd", {}, b"") == [1]

    def test_payload_transform_gets_raw_header_and_signature(self):
        seen = {}

        def transform(raw, header, signature):
            seen.update(raw=raw, header=header, signature=signature)
            return "eyJwYXkiOiJsb2FkIn0"

        payload = decode_payload("WzFd", {"alg": "HS256"}, b"sig", transform)

        assert payload == {"pay": "load"}
        assert seen == {"raw": "WzFd", "header": {"alg": "HS256"}, "signature": b"sig"}

    def test_payload_transform_output_is_validated(self):
        with pytest.raises(m.DecodeError, match="Invalid segment encoding"):
            decode_payload("WzFd", {}, b"", lambda *_: "%%%")

    def test_signature_decoding(self):
        assert decode_signature(None) == b""
        assert decode_signature("") == b""
        assert decode_signature("c2ln") == b"sig"
        with pytest.raises(m.DecodeError):
            decode_signature("c2ln!")
