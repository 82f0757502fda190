# ==============================================================================
# Tests for Idempotent Row Keys
# ==============================================================================
"""
Unit tests for the deterministic warehouse row keys.
"""

import hashlib

from eventsync.core.idempotency import (
    cta_click_key,
    hash_id,
    pageview_key,
    session_key,
    video_event_key,
)


class TestHashId:
    def test_sha1_as_decimal(self):
        expected = str(int(hashlib.sha1(b"u1|1715299200000000|page_view").hexdigest(), 16))
        assert hash_id("u1", 1715299200000000, "page_view") == expected

    def test_stable_across_calls(self):
        assert hash_id("a", "b") == hash_id("a", "b")

    def test_order_matters(self):
        assert hash_id("a", "b") != hash_id("b", "a")

    def test_none_hashes_as_empty(self):
        assert hash_id("a", None) == hash_id("a", "")


class TestViewKeys:
    def test_session_key(self):
        assert session_key("u1", 111) == "u1_111"

    def test_pageview_key_differs_by_timestamp(self):
        assert pageview_key("u1", 1) != pageview_key("u1", 2)

    def test_video_key_includes_event_name(self):
        assert video_event_key("u1", 1, "video_start", "v1") != video_event_key("u1", 1, "video_pause", "v1")

    def test_video_key_missing_video_id(self):
        assert video_event_key("u1", 1, "video_start", None) == video_event_key("u1", 1, "video_start", "")

    def test_cta_key_differs_by_cta(self):
        assert cta_click_key("u1", 1, "book-now") != cta_click_key("u1", 1, "contact")
