"""
LinkedIn Selector Tables
========================

One ordered matcher list per logical concept. Order encodes preference:
the first selector that matches anything wins. LinkedIn reshuffles its
markup often, so these tables are tuned independently of the traversal
code and are never mutated at runtime.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Sequence, Tuple

from assist_core.dom import DocumentNode, HostDocument

logger = logging.getLogger(__name__)


SELECTORS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    # Message thread container
    "message_thread": (
        '[class*="msg-s-message-list"]',
        ".msg-s-message-list-container",
        '[data-test-id="message-list"]',
        ".msg-thread",
        ".msg-conversations-container__conversations-list",
    ),
    # Individual message item
    "message_item": (
        ".msg-s-message-list__event",
        '[class*="msg-s-event-listitem"]',
        ".msg-s-message-group",
        '[class*="msg-s-message-list-content"]',
    ),
    "message_content": (
        ".msg-s-event-listitem__body",
        '[class*="msg-s-event-listitem__message-body"]',
        ".msg-s-message-group__content",
        '[class*="msg-s-event-listitem__body"] p',
        ".msg-s-event__content",
    ),
    "message_sender": (
        ".msg-s-message-group__name",
        '[class*="msg-s-message-group__profile-link"]',
        ".msg-s-event-listitem__profile-link",
        ".msg-s-message-group__meta .msg-s-message-group__name",
        '[class*="msg-s-event-listitem"] [class*="profile-link"]',
    ),
    "message_timestamp": (
        ".msg-s-message-group__timestamp",
        '[class*="msg-s-message-list__time-heading"]',
        ".msg-s-event-listitem__timestamp",
        "time",
        '[class*="timestamp"]',
        ".msg-s-message-group__meta time",
        "[datetime]",
    ),
    # "Today", "Yesterday", "Jan 15" headings between message runs
    "date_separator": (
        ".msg-s-message-list__time-heading",
        '[class*="time-heading"]',
        ".msg-s-message-list__separator",
        '[class*="date-separator"]',
    ),
    "self_message": (
        ".msg-s-message-list__event--self-sent",
        '[class*="msg-s-event-listitem--self"]',
        '[class*="self-sent"]',
        '[class*="msg-s-message-group--self"]',
        '[data-sender-type="self"]',
    ),
    # Self-name sources, tried in this order by the profile resolver
    "self_nav_photo": (
        ".global-nav__me-photo",
    ),
    "self_actor_link": (
        ".feed-identity-module__actor-meta a",
        ".profile-rail-card__actor-link",
    ),
    "self_photo_alt": (
        ".global-nav__primary-link-me-menu-trigger img",
        '[data-control-name="identity_profile_photo"] img',
        'img[alt^="photo of" i]',
    ),
    "self_headline": (
        ".feed-identity-module__headline",
        ".profile-rail-card__headline",
    ),
    "recipient_profile_link": (
        ".msg-thread__link-to-profile",
        '.msg-overlay-bubble-header a[href*="/in/"]',
        ".msg-s-message-group__profile-link",
        '[class*="msg-thread"] a[href*="/in/"]',
    ),
    "recipient_headline": (
        ".msg-overlay-bubble-header__subtitle",
        ".msg-s-profile-card__subtitle",
        ".msg-thread__headline",
    ),
    # Messages are grouped by sender
    "message_group": (
        ".msg-s-message-group",
        '[class*="msg-s-message-group"]',
    ),
    "message_group_sender": (
        ".msg-s-message-group__name",
        ".msg-s-message-group__profile-link",
        '[class*="msg-s-message-group__name"]',
    ),
    "message_body": (
        '.msg-s-event-listitem__body, [class*="msg-s-event-listitem__body"]',
    ),
    "message_list_item": (
        ".msg-s-event-listitem",
    ),
    "thread_sender_name": (
        '.msg-s-event-listitem__profile-link, [class*="profile-link"]',
    ),
    "message_input": (
        ".msg-form__contenteditable",
        '[data-test-id="message-textbox"]',
        '[contenteditable="true"][role="textbox"]',
        ".msg-form__message-texteditor [contenteditable]",
    ),
    # The compose modal around the active input
    "compose_surface": (
        ".msg-overlay-conversation-bubble",
        ".msg-convo-wrapper",
        '[class*="msg-overlay-conversation-bubble"]',
        '[class*="msg-overlay-bubble"]',
    ),
    "compose_scope_fallback": (
        '[class*="msg-"]',
    ),
    # Counterpart strategies, searched inside the compose surface
    "compose_pill": (
        '[class*="pill"]',
    ),
    "compose_lockup": (
        '[class*="lockup"], [class*="entity"]',
    ),
    "lockup_title": (
        '[class*="title"]',
    ),
    "lockup_subtitle": (
        '[class*="subtitle"]',
    ),
    "profile_link": (
        'a[href*="/in/"]',
    ),
    "compose_heading": (
        "h2, h3",
    ),
    "compose_text": (
        "p, span",
    ),
    "header_name": (
        "a, h2, span",
    ),
    # Conversation header (contains recipient name)
    "conversation_header": (
        ".msg-overlay-bubble-header__title",
        ".msg-conversation-card__content",
        '[class*="msg-overlay-bubble-header"]',
        ".msg-thread__link-to-profile",
        ".msg-overlay-bubble-header h2",
        ".msg-compose-form-v2__pill",
        ".msg-connections-typeahead__search-result--selected",
        '[class*="msg-compose"] [class*="pill"]',
    ),
    # Blue pill with the name in a new-message popup
    "new_message_recipient": (
        ".msg-compose-form-v2__pill",
        ".artdeco-pill",
        '[class*="msg-compose"] .artdeco-pill',
        '[class*="compose"] [class*="pill"]',
        ".msg-connections-typeahead__search-result--selected",
    ),
    "messaging_container": (
        ".msg-overlay-list-bubble",
        ".msg-conversation-listitem",
        "#messaging",
        ".msg-overlay-conversation-bubble",
        '[class*="msg-overlay"]',
    ),
    "conversation_surface": (
        ".msg-overlay-conversation-bubble",
        ".msg-overlay-bubble-header",
        ".msg-compose-form-v2",
        '[class*="msg-compose"]',
    ),
    # Profile page: current company in the experience section
    "experience_company": (
        '#experience ~ .pvs-list__outer-container .hoverable-link-text span[aria-hidden="true"]',
        'section:has(#experience) .hoverable-link-text span[aria-hidden="true"]',
        '[id*="experience"] .t-bold span[aria-hidden="true"]',
        ".experience-section .pv-entity__secondary-title",
        '[class*="experience"] [class*="company-name"]',
        "section:has(#experience) li .t-bold a span",
        'section:has(#experience) li .t-bold span[aria-hidden="true"]',
        '.pvs-entity--with-path .t-bold span[aria-hidden="true"]',
    ),
    "experience_description": (
        ".experience-section .pv-entity__description",
        '[class*="experience"] [class*="description"]',
        ".pv-profile-section__card-item-v2 .pv-entity__extra-details",
        '[data-field="experience_description"]',
        '.pvs-list__item--line-separated [class*="display-flex"] [class*="visually-hidden"] + span',
        'section:has(#experience) li [class*="inline-show-more-text"]',
        'section:has(#experience) li .pvs-list__outer-container [aria-hidden="true"] span',
        '[class*="experience"] ul li .t-14.t-normal',
        '[class*="experience"] ul li span[aria-hidden="true"]',
        '.pv-shared-text-with-see-more span[aria-hidden="true"]',
    ),
    "experience_section": (
        '#experience, [id*="experience"]',
    ),
    "experience_container": (
        '[id*="experience"], .experience-section, section:has([id*="experience"])',
    ),
    "experience_bold": (
        '.t-bold span[aria-hidden="true"], strong, b',
    ),
    "experience_text": (
        "span, p, div",
    ),
    # Feed posts
    "comment_box": (
        ".comments-comment-box",
        ".comments-comment-texteditor",
        ".comments-comment-box__form",
        ".comments-comment-box-comment__text-editor",
        '[data-placeholder="Add a comment…"]',
        '[placeholder="Add a comment..."]',
        ".feed-shared-update-v2 .ql-editor",
        ".comments-comment-list",
        ".comments-comments-list",
        ".comments-comment-box__form-container",
    ),
    "active_comment_box": (
        ".comments-comment-box, .comments-comment-texteditor",
    ),
    "open_comment_section": (
        ".comments-comments-list, .comments-comment-box",
    ),
    "post_container": (
        ".feed-shared-update-v2, .feed-shared-update, [data-urn]",
    ),
    "post_author_name": (
        '.update-components-actor__name span[aria-hidden="true"]',
        '.feed-shared-actor__name span[aria-hidden="true"]',
        '.update-components-actor__title span[aria-hidden="true"]',
    ),
    "post_author_headline": (
        ".update-components-actor__description",
        ".feed-shared-actor__description",
        ".update-components-actor__subtitle",
    ),
    "post_content": (
        ".feed-shared-update-v2__description",
        ".feed-shared-text",
        ".update-components-text",
        ".feed-shared-inline-show-more-text",
        '[data-test-id="main-feed-activity-card__commentary"]',
    ),
    "post_expanded_content": (
        ".feed-shared-inline-show-more-text--expanded",
    ),
    "post_celebration_header": (
        ".feed-shared-header, .update-components-header",
    ),
    # Post kind markers, checked in this order
    "post_image": (
        ".feed-shared-image, .update-components-image",
    ),
    "post_video": (
        ".feed-shared-linkedin-video, video",
    ),
    "post_article": (
        ".feed-shared-article, .update-components-article",
    ),
    "post_celebration": (
        ".feed-shared-celebration, [data-celebration]",
    ),
})

# Detached sub-document host used by LinkedIn's messaging overlay outside /messaging/
SHADOW_HOST_SELECTOR = '[data-testid="interop-shadowdom"]'


def _scopes(document: HostDocument, scope: Optional[DocumentNode]) -> List[List[DocumentNode]]:
    """Search passes, in order: scoped subtree only, or primary then detached."""
    if scope is not None:
        return [[scope]]
    passes: List[List[DocumentNode]] = [[document.root]]
    if document.detached:
        passes.append(list(document.detached))
    return passes


def resolve_with(
    document: HostDocument,
    selectors: Sequence[str],
    scope: Optional[DocumentNode] = None,
) -> Optional[DocumentNode]:
    """Return the first node matched by the first matching selector."""
    for roots in _scopes(document, scope):
        for selector in selectors:
            for root in roots:
                found = root.select_one(selector)
                if found is not None:
                    return found
    return None


def resolve_all_with(
    document: HostDocument,
    selectors: Sequence[str],
    scope: Optional[DocumentNode] = None,
) -> List[DocumentNode]:
    """Return every node matched by the first selector that matches anything."""
    for roots in _scopes(document, scope):
        for selector in selectors:
            found: List[DocumentNode] = []
            for root in roots:
                found.extend(root.select(selector))
            if found:
                return found
    return []


def resolve(
    document: HostDocument,
    concept: str,
    scope: Optional[DocumentNode] = None,
) -> Optional[DocumentNode]:
    """
    Resolve a logical concept to a single node.

    Args:
        document: Host document to search
        concept: Key into SELECTORS (e.g. "message_thread")
        scope: Optional subtree to confine the search to

    Returns:
        First matching node, or None when every matcher misses
    """
    return resolve_with(document, SELECTORS[concept], scope)


def resolve_all(
    document: HostDocument,
    concept: str,
    scope: Optional[DocumentNode] = None,
) -> List[DocumentNode]:
    """Resolve a logical concept to all nodes of the first matching selector."""
    return resolve_all_with(document, SELECTORS[concept], scope)


def iter_candidates(
    document: HostDocument,
    concept: str,
    scope: Optional[DocumentNode] = None,
) -> Iterator[DocumentNode]:
    """
    Yield every match of every selector of a concept, selector by selector.

    For heuristics that must inspect candidates (length, keywords) before
    accepting one; callers stop iterating at the first acceptable node.
    """
    for roots in _scopes(document, scope):
        for selector in SELECTORS[concept]:
            for root in roots:
                yield from root.select(selector)


def matches_any(node: DocumentNode, concept: str) -> bool:
    """True when the node, an ancestor, or a descendant matches the concept."""
    for selector in SELECTORS[concept]:
        if node.matches(selector) or node.closest(selector) is not None or node.select_one(selector) is not None:
            return True
    return False
