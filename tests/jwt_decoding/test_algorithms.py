import pytest

import jwt_decoding as m


class PrefixAlgorithm:
    """Capability algorithm accepting any alg with a given prefix."""

    def __init__(self, prefix: str, result: bool = True):
        self.prefix = prefix
        self.result = result
        self.calls: list[dict] = []

    def valid_alg(self, alg: str) -> bool:
        return alg.startswith(self.prefix)

    def verify(self, signing_input, signature, *, key, header, payload) -> bool:
        self.calls.append({"key": key, "header": header, "payload": payload})
        return self.result


def test_to_algorithm_variants():
    capability = PrefixAlgorithm("X")

    assert m.to_algorithm("HS256") == m.IdentifierAlgorithm("HS256")
    assert m.to_algorithm(capability) == m.CapabilityAlgorithm(capability)
    assert m.to_algorithm(m.IdentifierAlgorithm("RS256")) == m.IdentifierAlgorithm("RS256")

    with pytest.raises(TypeError):
        m.to_algorithm(42)


class TestNegotiation:
    def test_empty_allow_list(self):
        negotiator = m.AlgorithmNegotiator(())
        with pytest.raises(m.IncorrectAlgorithm, match="An algorithm must be specified"):
            negotiator.negotiate({"alg": "HS256"})

    def test_missing_alg_header(self):
        negotiator = m.AlgorithmNegotiator((m.IdentifierAlgorithm("HS256"),))
        with pytest.raises(m.IncorrectAlgorithm, match="missing alg header"):
            negotiator.negotiate({})
        with pytest.raises(m.IncorrectAlgorithm, match="missing alg header"):
            negotiator.negotiate({"alg": 256})

    def test_empty_allow_list_is_reported_before_missing_alg(self):
        with pytest.raises(m.IncorrectAlgorithm, match="An algorithm must be specified"):
            m.AlgorithmNegotiator(()).negotiate({})

    def test_not_allowed(self):
        negotiator = m.AlgorithmNegotiator((m.IdentifierAlgorithm("RS256"),))
        with pytest.raises(m.IncorrectAlgorithm, match="Expected a different algorithm"):
            negotiator.negotiate({"alg": "HS256"})

    def test_none_is_never_implicit(self):
        negotiator = m.AlgorithmNegotiator((m.IdentifierAlgorithm("HS256"),))
        with pytest.raises(m.IncorrectAlgorithm):
            negotiator.negotiate({"alg": "none"})

    def test_returns_matching_entries_in_order(self):
        capability = m.CapabilityAlgorithm(PrefixAlgorithm("HS"))
        allowed = (m.IdentifierAlgorithm("RS256"), capability, m.IdentifierAlgorithm("HS256"))

        matched = m.AlgorithmNegotiator(allowed).negotiate({"alg": "HS256"})

        assert matched == (capability, m.IdentifierAlgorithm("HS256"))

    def test_strict_matching_is_case_sensitive(self):
        negotiator = m.AlgorithmNegotiator(
            (m.IdentifierAlgorithm("HS256"),), m.AlgorithmMatching.STRICT
        )
        with pytest.raises(m.IncorrectAlgorithm):
            negotiator.negotiate({"alg": "hs256"})

    def test_legacy_matching_ignores_case(self):
        negotiator = m.AlgorithmNegotiator(
            (m.IdentifierAlgorithm("HS256"),), m.AlgorithmMatching.LEGACY
        )
        assert negotiator.negotiate({"alg": "hs256"}) == (m.IdentifierAlgorithm("HS256"),)

    def test_capability_decides_membership(self):
        capability = m.CapabilityAlgorithm(PrefixAlgorithm("ES"))
        negotiator = m.AlgorithmNegotiator((capability,))

        assert negotiator.negotiate({"alg": "ES512"}) == (capability,)
        with pytest.raises(m.IncorrectAlgorithm):
            negotiator.negotiate({"alg": "RS256"})
