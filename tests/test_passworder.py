import json

import pytest

from suirecover import passworder
from suirecover.errors import AuthenticationError, FormatError

from tests.helpers import make_envelope


class TestParseEnvelope:

    def test_iterations_as_text(self):
        env = make_envelope("pw", b"hello", iterations=2000)
        env["keyMetadata"]["params"]["iterations"] = "2000"
        assert passworder.parse_envelope(env).iters == 2000

    def test_dict_and_text_forms_agree(self):
        env = make_envelope("pw", b"hello", iterations=1234)
        a = passworder.parse_envelope(env)
        b = passworder.parse_envelope(json.dumps(env))
        assert a == b
        assert a.iters == 1234
        assert len(a.iv) == 16

    def test_missing_key_metadata_uses_legacy_iterations(self):
        env = make_envelope("pw", b"hello")
        del env["keyMetadata"]
        assert passworder.parse_envelope(env).iters == passworder.LEGACY_ITERATIONS

    @pytest.mark.parametrize("envelope", [
        None,
        True,
        "not json",
        ["data"],
        {"iv": "AAAA", "salt": "AAAA"},
        {"data": "%%%", "iv": "AAAA", "salt": "AAAA"},
    ])
    def test_malformed(self, envelope):
        with pytest.raises(FormatError):
            passworder.parse_envelope(envelope)

    @pytest.mark.parametrize("iterations", [
        "many", None, True, 1.5, float("inf"), 0, -5, 2**40, "99999999999",
    ])
    def test_bad_iterations(self, iterations):
        env = make_envelope("pw", b"hello")
        env["keyMetadata"]["params"]["iterations"] = iterations
        with pytest.raises(FormatError):
            passworder.parse_envelope(env)


class TestDecrypt:

    def test_correct_password(self):
        env = make_envelope("pw", b'{"data": 1}')
        assert passworder.decrypt("pw", env) == b'{"data": 1}'

    def test_wrong_password(self):
        env = make_envelope("pw", b"secret")
        with pytest.raises(AuthenticationError):
            passworder.decrypt("nope", env)

    def test_tampered_ciphertext(self):
        env = make_envelope("pw", b"secret")
        parts = passworder.parse_envelope(env)
        parts.data = bytes([parts.data[0] ^ 1]) + parts.data[1:]
        with pytest.raises(AuthenticationError):
            passworder.decrypt_gcm(parts, "pw")

    def test_truncated_ciphertext(self):
        env = make_envelope("pw", b"secret")
        env["data"] = "AAAA"
        with pytest.raises(FormatError):
            passworder.decrypt("pw", env)

    def test_oversized_iterations_are_a_format_error(self):
        parts = passworder.parse_envelope(make_envelope("pw", b"secret"))
        parts.iters = 2**40
        with pytest.raises(FormatError):
            passworder.decrypt_gcm(parts, "pw")
