"""
Surface Observation
===================

Pure checks deciding whether a trigger should be offered for the current
document state. The host re-runs them on every document mutation, so each
is a plain function of the document: same state, same answer.
"""

from __future__ import annotations

from urllib.parse import urlparse

from assist_core.dom import HostDocument
from assist_core.selectors import resolve

FEED_PATH_PREFIXES = ("/feed", "/in/", "/posts/")


def is_feed_page(url: str) -> bool:
    """Feed, profile and single-post pages, where comment boxes live."""
    path = urlparse(url or "").path
    return path.startswith(FEED_PATH_PREFIXES)


def is_messaging_page(document: HostDocument) -> bool:
    """The messaging page itself, or any page with a chat bubble or compose window open."""
    if "/messaging/" in (document.url or ""):
        return True
    return (
        resolve(document, "messaging_container") is not None
        or resolve(document, "conversation_surface") is not None
    )


def is_input_available(document: HostDocument) -> bool:
    return any(
        resolve(document, concept) is not None
        for concept in ("message_input", "conversation_header", "new_message_recipient", "messaging_container")
    )


def is_comment_box_open(document: HostDocument) -> bool:
    return resolve(document, "comment_box") is not None


def should_show_reply_trigger(document: HostDocument) -> bool:
    """
    Whether to offer message suggestions.

    On feed-like pages an open comment box takes priority, so the
    messaging trigger stays hidden there.
    """
    if is_feed_page(document.url) and is_comment_box_open(document):
        return False
    return is_messaging_page(document) and is_input_available(document)


def should_show_comment_trigger(document: HostDocument) -> bool:
    return is_feed_page(document.url) and is_comment_box_open(document)
