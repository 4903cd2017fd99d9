"""
Document and Selector Tests
===========================

Tests for the HostDocument tree wrapper and priority-list resolution.
"""

from pathlib import Path

import pytest

from assist_core.dom import node_text, parse_document, precedes
from assist_core.selectors import (
    SELECTORS,
    iter_candidates,
    matches_any,
    resolve,
    resolve_all,
    resolve_with,
)


class TestSoupNode:
    """Tests for the BeautifulSoup-backed node."""

    def test_text_and_attributes(self):
        """Text collapses whitespace; class lists read back as one string."""
        doc = parse_document('<div class="a b" data-x="1">  Hello \n  world </div>')
        node = doc.root.select_one("div")
        assert node_text(node) == "Hello world"
        assert node.attr("class") == "a b"
        assert node.attr("data-x") == "1"
        assert node.attr("missing") is None

    def test_invalid_selector_is_a_miss(self):
        """A selector soupsieve cannot parse matches nothing instead of raising."""
        doc = parse_document("<div><a href='/in/x'>x</a></div>")
        assert doc.root.select_one("a[") is None
        assert doc.root.select("a[") == []
        assert doc.root.select_one("a") is not None

    def test_closest_and_parent(self):
        """closest walks up from the node itself."""
        doc = parse_document('<section class="s"><div class="d"><span>x</span></div></section>')
        span = doc.root.select_one("span")
        assert span.closest(".s").tag == "section"
        assert span.parent.tag == "div"
        assert span.closest(".nope") is None

    def test_node_text_of_none(self):
        """Absent nodes read as empty text."""
        assert node_text(None) == ""


class TestPosition:
    """Tests for vertical-position comparison."""

    def test_document_order_without_offsets(self):
        """Earlier elements precede later ones."""
        doc = parse_document("<p id='a'>a</p><p id='b'>b</p>")
        a, b = doc.root.select_one("#a"), doc.root.select_one("#b")
        assert precedes(a, b)
        assert not precedes(b, a)

    def test_measured_offsets_win(self):
        """When both carry a captured offset, the offset decides."""
        doc = parse_document(
            "<p id='a' data-assist-top='300'>a</p><p id='b' data-assist-top='100'>b</p>"
        )
        a, b = doc.root.select_one("#a"), doc.root.select_one("#b")
        assert precedes(b, a)
        assert not precedes(a, b)

    def test_one_offset_falls_back_to_order(self):
        """A single measured offset is not comparable."""
        doc = parse_document("<p id='a' data-assist-top='300'>a</p><p id='b'>b</p>")
        a, b = doc.root.select_one("#a"), doc.root.select_one("#b")
        assert precedes(a, b)


class TestResolve:
    """Tests for priority-list resolution."""

    def test_selector_priority_beats_document_order(self):
        """The first selector in the table wins even if its match comes later."""
        doc = parse_document(
            '<div class="msg-thread__headline">Old headline</div>'
            '<div class="msg-overlay-bubble-header__subtitle">Current headline</div>'
        )
        assert node_text(resolve(doc, "recipient_headline")) == "Current headline"

    def test_miss_returns_none(self):
        """Every matcher missing yields None."""
        doc = parse_document("<div>nothing here</div>")
        assert resolve(doc, "message_thread") is None
        assert resolve_all(doc, "message_group") == []

    def test_scope_confines_search(self):
        """A scoped search never escapes the subtree."""
        doc = parse_document(
            '<div id="one"><span class="msg-s-message-group__name">Inside</span></div>'
            '<div id="two"><span class="msg-s-message-group__name">Outside</span></div>'
        )
        scope = doc.root.select_one("#two")
        assert node_text(resolve(doc, "message_group_sender", scope=scope)) == "Outside"

    def test_detached_documents_searched_second(self):
        """Shadow trees are only consulted after the primary tree misses."""
        doc = parse_document(
            "<div>page</div>",
            shadow_html=['<div class="msg-overlay-conversation-bubble">chat</div>'],
        )
        found = resolve(doc, "conversation_surface")
        assert found is not None
        assert node_text(found) == "chat"

    def test_primary_tree_preferred_over_detached(self):
        """A primary-tree match is returned before any detached match."""
        doc = parse_document(
            '<div class="msg-overlay-bubble-header">primary</div>',
            shadow_html=['<div class="msg-overlay-conversation-bubble">shadow</div>'],
        )
        assert node_text(resolve(doc, "conversation_surface")) == "primary"

    def test_resolve_all_uses_first_matching_selector(self):
        """All matches come from the one selector that found anything."""
        doc = parse_document(
            '<div class="msg-s-message-group">a</div><div class="msg-s-message-group">b</div>'
        )
        assert [node_text(n) for n in resolve_all(doc, "message_group")] == ["a", "b"]

    def test_resolve_with_ad_hoc_list(self):
        """Ad-hoc priority lists resolve like table entries."""
        doc = parse_document("<b>bold</b><i>italic</i>")
        assert node_text(resolve_with(doc, ("u", "i", "b"))) == "italic"

    def test_iter_candidates_yields_selector_by_selector(self):
        """Candidates come grouped by selector priority."""
        doc = parse_document(
            '<a class="profile-rail-card__actor-link">Rail</a>'
            '<div class="feed-identity-module__actor-meta"><a>Module</a></div>'
        )
        names = [node_text(n) for n in iter_candidates(doc, "self_actor_link")]
        assert names == ["Module", "Rail"]

    def test_matches_any_checks_descendants_and_ancestors(self):
        """Structural markers are found on the node, above it, or below it."""
        doc = parse_document(
            '<div class="msg-s-message-list__event--self-sent"><p id="p">hi</p></div>'
            '<div id="plain"><p>x</p></div>'
        )
        assert matches_any(doc.root.select_one("#p"), "self_message")
        assert not matches_any(doc.root.select_one("#plain"), "self_message")


class TestSelectorTables:
    """Tests for the selector configuration itself."""

    def test_tables_are_immutable(self):
        """The table cannot be modified at runtime."""
        with pytest.raises(TypeError):
            SELECTORS["message_thread"] = (".x",)  # type: ignore[index]

    def test_every_concept_has_selectors(self):
        """No concept is empty."""
        assert all(len(selectors) > 0 for selectors in SELECTORS.values())

    def test_every_concept_is_read(self):
        """Each table is looked up by name somewhere outside the table module."""
        root = Path(__file__).resolve().parent.parent
        sources = [
            path.read_text(encoding="utf-8")
            for package in ("assist_core", "assist_runtime")
            for path in (root / package).glob("*.py")
            if path.name != "selectors.py"
        ]
        unread = [
            concept for concept in SELECTORS
            if not any(f'"{concept}"' in source for source in sources)
        ]
        assert unread == []
