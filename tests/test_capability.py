"""
Tests for capability URL parsing, rewriting, resolution and list traversal.
"""

import pytest

from conftest import server_log, server_url
from natter_client.auth.credentials import Credentials
from natter_client.capability import (
    CapabilityResolver,
    CapabilityURL,
    redact_url,
    rewrite_capability_url,
)
from natter_client.errors import CapabilityResolutionError


# ====================================================================
# Parsing and rewriting
# ====================================================================

class TestCapabilityURL:

    def test_fragment_scenario(self):
        assert (
            rewrite_capability_url("https://host/caps#tok123")
            == "https://host/caps?access_token=tok123"
        )

    def test_userinfo_slot(self):
        cap = CapabilityURL.parse("https://tok123@host/spaces/1/messages", slot="userinfo")
        assert cap.token == "tok123"
        assert cap.href == "https://host/spaces/1/messages?access_token=tok123"

    def test_slot_is_emptied(self):
        href = rewrite_capability_url("https://host/caps#secret")
        assert "#" not in href
        href = rewrite_capability_url("https://secret@host/caps", slot="userinfo")
        assert "@" not in href

    def test_reserved_characters_round_trip(self):
        cap = CapabilityURL.parse("https://host/caps#a/b+c=")
        assert cap.token == "a/b+c="
        assert cap.href.endswith("?access_token=a%2Fb%2Bc%3D")

    def test_encoded_slot_is_decoded(self):
        cap = CapabilityURL.parse("https://host/caps#a%2Fb%2Bc%3D")
        assert cap.token == "a/b+c="

    def test_existing_query_is_replaced(self):
        href = rewrite_capability_url("https://host/caps?page=2#tok")
        assert href == "https://host/caps?access_token=tok"

    def test_query_form_is_accepted(self):
        cap = CapabilityURL.parse("https://host/caps?access_token=a%2Fb%2Bc%3D")
        assert cap.token == "a/b+c="
        assert cap.slot == "query"

    def test_port_is_kept(self):
        href = rewrite_capability_url("http://127.0.0.1:4567/spaces/1#t")
        assert href == "http://127.0.0.1:4567/spaces/1?access_token=t"

    @pytest.mark.parametrize("url", [
        "https://host/caps",
        "https://host/caps#",
        "/relative/path#tok",
        "ftp://host/caps#tok",
        "https://host:notaport/caps#tok",
    ])
    def test_unusable_urls(self, url):
        with pytest.raises(CapabilityResolutionError):
            CapabilityURL.parse(url)

    def test_unknown_slot(self):
        with pytest.raises(ValueError):
            CapabilityURL.parse("https://host/caps#tok", slot="header")

    def test_redaction_hides_token(self):
        cap = CapabilityURL.parse("https://host/caps#supersecret")
        assert "supersecret" not in cap.redacted
        assert "supersecret" not in redact_url("https://supersecret@host/x?access_token=supersecret")


# ====================================================================
# Resolution against the fake server
# ====================================================================

class TestResolve:

    @pytest.mark.asyncio
    async def test_sends_query_token_and_no_session(self, cookie_server, make_config):
        cfg = make_config(cookie_server, auth_strategy="cookie")
        async with cfg.build_client() as client:
            await cfg.build_login_manager(client).login(Credentials("alice", "s3cret"))

            received = []
            async with cfg.build_resolver() as resolver:
                await resolver.resolve(server_url(cookie_server, "/caps") + "#tok123", received.append)

        assert received == [{"received": "tok123"}]
        call = server_log(cookie_server)[-1]
        assert call["raw_query"] == "access_token=tok123"
        assert "Authorization" not in call["headers"]
        assert "Cookie" not in call["headers"]

    @pytest.mark.asyncio
    async def test_reserved_token_on_the_wire(self, bearer_server, make_config):
        cfg = make_config(bearer_server)
        async with cfg.build_resolver() as resolver:
            data = await resolver.fetch(server_url(bearer_server, "/caps") + "#a/b+c=")

        assert data == {"received": "a/b+c="}
        assert server_log(bearer_server)[-1]["raw_query"] == "access_token=a%2Fb%2Bc%3D"

    @pytest.mark.asyncio
    async def test_userinfo_slot_on_the_wire(self, bearer_server, make_config):
        cfg = make_config(bearer_server, capability_slot="userinfo")
        url = server_url(bearer_server, "/caps").replace("http://", "http://tok123@")
        async with cfg.build_resolver() as resolver:
            data = await resolver.fetch(url)
        assert data == {"received": "tok123"}

    @pytest.mark.asyncio
    async def test_non_json_is_reported_not_raised(self, bearer_server, make_config):
        cfg = make_config(bearer_server)
        delivered, errors = [], []
        async with cfg.build_resolver() as resolver:
            await resolver.resolve(
                server_url(bearer_server, "/html") + "#tok", delivered.append, errors.append
            )
        assert delivered == []
        assert len(errors) == 1
        assert "not JSON" in str(errors[0])

    @pytest.mark.asyncio
    async def test_http_failure_is_reported(self, bearer_server, make_config):
        cfg = make_config(bearer_server)
        errors = []
        async with cfg.build_resolver(on_error=errors.append) as resolver:
            await resolver.resolve(server_url(bearer_server, "/lists/ordered") + "#wrong", print)
        assert len(errors) == 1
        assert "403" in str(errors[0])
        assert "wrong" not in str(errors[0])

    @pytest.mark.asyncio
    async def test_malformed_url_is_reported(self):
        errors = []
        async with CapabilityResolver(on_error=errors.append) as resolver:
            await resolver.resolve("https://host/no-token", print)
        assert isinstance(errors[0], CapabilityResolutionError)

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self, bearer_server, make_config):
        cfg = make_config(bearer_server)
        seen = []

        async def callback(data):
            seen.append(data)

        async with cfg.build_resolver() as resolver:
            await resolver.resolve(server_url(bearer_server, "/caps") + "#t", callback)
        assert seen == [{"received": "t"}]


# ====================================================================
# Traversal
# ====================================================================

class TestTraverse:

    @pytest.mark.asyncio
    async def test_renders_in_list_order(self, bearer_server, make_config):
        # Item 1 is the slowest to answer; order must still follow the list.
        cfg = make_config(bearer_server)
        rendered, errors = [], []
        async with cfg.build_resolver(on_error=errors.append) as resolver:
            results = await resolver.traverse(
                server_url(bearer_server, "/lists/ordered") + "#list-token", rendered.append
            )

        assert errors == []
        assert [item["index"] for item in rendered] == [1, 2, 3]
        assert [item["token"] for item in rendered] == ["tok-1", "tok-2", "tok-3"]
        assert results == rendered

    @pytest.mark.asyncio
    async def test_relative_links_use_list_origin(self, bearer_server, make_config):
        cfg = make_config(bearer_server)
        async with cfg.build_resolver() as resolver:
            await resolver.traverse(
                server_url(bearer_server, "/lists/ordered") + "#list-token", lambda data: None
            )
        paths = [entry["path"] for entry in server_log(bearer_server)]
        assert paths == ["/lists/ordered", "/items/1", "/items/2", "/items/3"]

    @pytest.mark.asyncio
    async def test_failing_element_is_skipped(self, bearer_server, make_config):
        cfg = make_config(bearer_server)
        rendered, errors = [], []
        async with cfg.build_resolver(on_error=errors.append) as resolver:
            results = await resolver.traverse(
                server_url(bearer_server, "/lists/with-broken") + "#list-token",
                rendered.append,
            )

        assert [item["index"] for item in results] == [1, 3]
        assert rendered == results
        assert len(errors) == 1
        assert "404" in str(errors[0])

    @pytest.mark.asyncio
    async def test_non_list_body_is_reported(self, bearer_server, make_config):
        cfg = make_config(bearer_server)
        rendered, errors = [], []
        async with cfg.build_resolver(on_error=errors.append) as resolver:
            results = await resolver.traverse(
                server_url(bearer_server, "/lists/not-a-list") + "#list-token",
                rendered.append,
            )
        assert results == [] and rendered == []
        assert "not a JSON array" in str(errors[0])

    @pytest.mark.asyncio
    async def test_unreadable_list_renders_nothing(self, bearer_server, make_config):
        cfg = make_config(bearer_server)
        rendered, errors = [], []
        async with cfg.build_resolver(on_error=errors.append) as resolver:
            await resolver.traverse(
                server_url(bearer_server, "/lists/ordered") + "#wrong", rendered.append
            )
        assert rendered == []
        assert len(errors) == 1
        assert [entry["path"] for entry in server_log(bearer_server)] == ["/lists/ordered"]
