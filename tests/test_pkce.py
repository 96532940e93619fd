import base64
import hashlib
import string

import pytest

from errors import ConfigurationError
from oauth.models import AppCredentials, AuthFlavor
from oauth.pkce import AuthExtras, PKCEAuthExtras, PKCECodeGenerator, auth_extras_for, code_challenge_for

ALNUM = set(string.ascii_letters + string.digits)


def test_generated_pairs_are_well_formed():
    generator = PKCECodeGenerator()
    for _ in range(50):
        pair = generator.generate()
        assert len(pair.code_verifier) == 43
        assert set(pair.code_verifier) <= ALNUM

        expected = base64.urlsafe_b64encode(hashlib.sha256(pair.code_verifier.encode()).digest()).decode().rstrip("=")
        assert pair.code_challenge == expected
        assert "=" not in pair.code_challenge
        assert "+" not in pair.code_challenge and "/" not in pair.code_challenge


def test_generated_verifiers_differ():
    generator = PKCECodeGenerator()
    assert len({generator.generate().code_verifier for _ in range(20)}) == 20


def test_challenge_is_unpadded_base64url_of_sha256():
    # FIPS 180-2 SHA-256 test vector for "abc"
    digest = bytes.fromhex("ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad")
    expected = base64.urlsafe_b64encode(digest).decode().rstrip("=")

    assert code_challenge_for("abc") == expected
    assert len(expected) == 43


def test_pkce_extras_keep_verifier_for_one_attempt():
    extras = PKCEAuthExtras()
    params = extras.begin()
    assert params["code_challenge_method"] == "S256"
    assert params["code_challenge"] == extras.pair.code_challenge

    token_params = extras.token_params(AppCredentials(key="k"))
    assert token_params == {"code_verifier": extras.pair.code_verifier}

    extras.finish()
    with pytest.raises(ValueError, match="Start login flow first"):
        extras.token_params(AppCredentials(key="k"))


def test_standard_extras_require_secret():
    extras = AuthExtras()
    assert extras.begin() == {}
    assert extras.token_params(AppCredentials(key="k", secret="s")) == {"client_secret": "s"}
    with pytest.raises(ConfigurationError):
        extras.token_params(AppCredentials(key="k"))


def test_extras_selected_by_flavor():
    assert isinstance(auth_extras_for(AuthFlavor.PKCE), PKCEAuthExtras)
    assert type(auth_extras_for(AuthFlavor.STANDARD)) is AuthExtras
