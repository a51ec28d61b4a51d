"""
Tests for credential handling: the Basic-auth codec and env/prompt resolution.
"""

import base64

from natter_client.auth.credentials import (
    Credentials,
    basic_authorization,
    encode_basic,
    resolve_credentials,
)


class TestEncodeBasic:

    def test_alice_scenario(self):
        assert encode_basic("alice", "s3cret") == "YWxpY2U6czNjcmV0"

    def test_header_value(self):
        creds = Credentials("alice", "s3cret")
        assert basic_authorization(creds) == "Basic YWxpY2U6czNjcmV0"

    def test_colon_in_password_is_kept(self):
        """Only the first colon separates; the rest belongs to the password."""
        encoded = encode_basic("bob", "a:b:c")
        assert base64.b64decode(encoded).decode() == "bob:a:b:c"

    def test_non_ascii_is_utf8(self):
        encoded = encode_basic("zoë", "pässword")
        assert base64.b64decode(encoded).decode("utf-8") == "zoë:pässword"


class TestResolveCredentials:

    def test_complete_credentials_pass_through(self, monkeypatch):
        monkeypatch.setenv("NATTER_USERNAME", "env-user")
        creds = resolve_credentials(Credentials("alice", "s3cret"), interactive=False)
        assert creds.username == "alice"
        assert creds.password == "s3cret"

    def test_env_fills_missing_fields(self, monkeypatch):
        monkeypatch.setenv("NATTER_USERNAME", "alice")
        monkeypatch.setenv("NATTER_PASSWORD", "s3cret")
        creds = resolve_credentials(interactive=False)
        assert creds.is_complete
        assert (creds.username, creds.password) == ("alice", "s3cret")

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("OTHER_USERNAME", "carol")
        monkeypatch.setenv("OTHER_PASSWORD", "pw")
        creds = resolve_credentials(prefixes=("OTHER",), interactive=False)
        assert creds.username == "carol"

    def test_incomplete_without_prompt(self, monkeypatch):
        monkeypatch.delenv("NATTER_USERNAME", raising=False)
        monkeypatch.delenv("NATTER_PASSWORD", raising=False)
        creds = resolve_credentials(Credentials(username="alice"), interactive=False)
        assert not creds.is_complete

    def test_prompt_fills_password(self, monkeypatch):
        monkeypatch.delenv("NATTER_PASSWORD", raising=False)
        monkeypatch.setattr("getpass.getpass", lambda prompt="": "typed")
        creds = resolve_credentials(Credentials(username="alice"), interactive=True)
        assert creds.password == "typed"

    def test_repr_hides_password(self):
        assert "s3cret" not in repr(Credentials("alice", "s3cret"))
