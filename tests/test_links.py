"""
Tests for capability link extraction from HTML.
"""

import pytest

from natter_client.links import extract_capability_links

BASE = "https://api.example/spaces/1/shared.html"


class TestExtractCapabilityLinks:

    def test_fragment_links_in_document_order(self):
        html = """
        <html><body>
          <a href="/spaces/1/messages/2#tok-b">second</a>
          <a href="https://api.example/spaces/1/messages/1#tok-a">first</a>
        </body></html>
        """
        assert extract_capability_links(html, BASE) == [
            "https://api.example/spaces/1/messages/2#tok-b",
            "https://api.example/spaces/1/messages/1#tok-a",
        ]

    def test_relative_href_resolves_against_base(self):
        html = '<a href="messages/3#tok">m</a>'
        assert extract_capability_links(html, BASE) == [
            "https://api.example/spaces/1/messages/3#tok"
        ]

    def test_plain_links_are_ignored(self):
        html = """
        <a href="/about">about</a>
        <a href="#top">top</a>
        <a href="javascript:void(0)">js</a>
        <a href="mailto:alice@example.com">mail</a>
        """
        assert extract_capability_links(html, BASE) == []

    def test_duplicates_are_dropped(self):
        html = '<a href="/m/1#t">a</a><a href="/m/1#t">again</a>'
        assert extract_capability_links(html, BASE) == ["https://api.example/m/1#t"]

    def test_query_form_is_recognised(self):
        html = '<a href="/m/1?access_token=abc">a</a><a href="/m/2?access_token=">b</a>'
        assert extract_capability_links(html, BASE) == [
            "https://api.example/m/1?access_token=abc"
        ]

    def test_userinfo_slot(self):
        html = """
        <a href="https://tok@api.example/m/1">cap</a>
        <a href="/m/2#not-a-token-here">fragment</a>
        """
        assert extract_capability_links(html, BASE, slot="userinfo") == [
            "https://tok@api.example/m/1"
        ]

    def test_unknown_slot(self):
        with pytest.raises(ValueError):
            extract_capability_links("<a href='/x#t'>x</a>", BASE, slot="cookie")
