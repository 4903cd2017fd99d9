"""
Message Extractor
=================

Builds the ConversationContext for the visible conversation, and the
PostContext for a feed post being commented on.

Messages are read group by group (one group = one sender's consecutive
messages); only when no group is found are individual message items
read instead. Output is always oldest first. Every message body is run
through contact-detail redaction before it is stored.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from assist_core.dom import DocumentNode, HostDocument, node_text
from assist_core.profiles import match_strength, resolve_profiles
from assist_core.selectors import SELECTORS, matches_any, resolve, resolve_all
from assist_core.timestamps import (
    DateSeparator,
    TimestampInfo,
    collect_date_separators,
    date_context_for,
    extract_timestamp,
)
from assist_runtime.models import (
    ConversationContext,
    Message,
    PostContext,
    PostKind,
    Sender,
    UserProfile,
)
from assist_runtime.redaction import preview, sanitize_content

logger = logging.getLogger(__name__)

TRANSCRIPT_LIMIT = 15
EMPTY_TRANSCRIPT = "No messages in conversation yet."
EMPTY_SUMMARY = "New conversation - no messages yet."


# =============================================================================
# Sender attribution
# =============================================================================

def classify_sender(
    sender_name: Optional[str],
    self_name: Optional[str],
    counterpart_name: Optional[str],
    structural_self: bool = False,
) -> Sender:
    """
    Attribute a message to self or other.

    The stronger fuzzy match wins (exact > first name > substring); a tie
    between two real matches goes to self. A sender matching neither
    known name is self only when both names are known, otherwise other.
    A self-sent structural marker is trusted outright.
    """
    if structural_self:
        return Sender.SELF
    if not sender_name:
        return Sender.OTHER

    self_score = match_strength(sender_name, self_name)
    other_score = match_strength(sender_name, counterpart_name)

    if self_score or other_score:
        return Sender.SELF if self_score >= other_score else Sender.OTHER
    if self_name and counterpart_name:
        return Sender.SELF
    return Sender.OTHER


def display_name(
    sender: Sender,
    sender_name: Optional[str],
    me: UserProfile,
    counterpart: UserProfile,
) -> str:
    if sender == Sender.SELF:
        return me.name or "Me"
    return sender_name or counterpart.name or "Them"


def _first_text(concept: str, scope: DocumentNode) -> Optional[str]:
    """First non-empty text among a concept's selectors inside scope."""
    for selector in SELECTORS[concept]:
        text = node_text(scope.select_one(selector))
        if text:
            return text
    return None


def _message(
    sender: Sender,
    name: str,
    content: str,
    stamp: Optional[TimestampInfo],
) -> Message:
    return Message(
        sender=sender,
        sender_display_name=name,
        content=sanitize_content(content),
        raw_timestamp=stamp.raw if stamp else None,
        relative_time=stamp.relative if stamp else None,
        is_recent=stamp.is_recent if stamp else False,
    )


# =============================================================================
# Extraction strategies
# =============================================================================

def _extract_from_groups(
    document: HostDocument,
    groups: List[DocumentNode],
    me: UserProfile,
    counterpart: UserProfile,
    now: datetime,
    separators: List[DateSeparator],
) -> List[Message]:
    messages: List[Message] = []
    body_selector = SELECTORS["message_body"][0]
    item_selector = SELECTORS["message_list_item"][0]

    for group in groups:
        sender_name = _first_text("message_group_sender", group)
        sender = classify_sender(sender_name, me.name, counterpart.name)
        name = display_name(sender, sender_name, me, counterpart)
        date_context = date_context_for(group, separators)

        for body in group.select(body_selector):
            content = node_text(body)
            if not content:
                continue
            stamp = extract_timestamp(document, group, date_context, now)
            if stamp is None:
                item = body.closest(item_selector) or body
                stamp = extract_timestamp(document, item, date_context, now)
            messages.append(_message(sender, name, content, stamp))

    return messages


def _extract_from_items(
    document: HostDocument,
    thread: DocumentNode,
    me: UserProfile,
    counterpart: UserProfile,
    now: datetime,
    separators: List[DateSeparator],
) -> List[Message]:
    messages: List[Message] = []

    for item in resolve_all(document, "message_item", scope=thread):
        content = node_text(resolve(document, "message_content", scope=item))
        if not content:
            continue

        sender_name = node_text(resolve(document, "message_sender", scope=item)) or None
        sender = classify_sender(
            sender_name,
            me.name,
            counterpart.name,
            structural_self=matches_any(item, "self_message"),
        )
        name = display_name(sender, sender_name, me, counterpart)
        stamp = extract_timestamp(document, item, date_context_for(item, separators), now)
        messages.append(_message(sender, name, content, stamp))

    return messages


def extract_messages(
    document: HostDocument,
    me: UserProfile,
    counterpart: UserProfile,
    now: datetime,
) -> List[Message]:
    """
    Extract the thread's messages, oldest first.

    Args:
        document: Host document
        me: Operator profile
        counterpart: Counterpart profile
        now: Current local time for relative labels

    Returns:
        Messages; empty when no thread is found
    """
    thread = resolve(document, "message_thread")
    if thread is None:
        logger.debug("Message thread not found")
        return []

    separators = collect_date_separators(document, thread, now)

    groups = resolve_all(document, "message_group", scope=thread)
    messages: List[Message] = []
    if groups:
        messages = _extract_from_groups(document, groups, me, counterpart, now, separators)
        logger.debug("Extracted %d messages from %d groups", len(messages), len(groups))

    if not messages:
        messages = _extract_from_items(document, thread, me, counterpart, now, separators)
        logger.debug("Extracted %d messages from individual items", len(messages))

    return messages


# =============================================================================
# Transcript and summary
# =============================================================================

def format_transcript(
    messages: List[Message],
    me: UserProfile,
    counterpart: UserProfile,
    limit: int = TRANSCRIPT_LIMIT,
) -> str:
    """Transcript of the most recent messages, a blank line at each change of sender."""
    if not messages:
        return EMPTY_TRANSCRIPT

    my_name = me.name or "ME"
    their_name = counterpart.name or "THEM"
    lines = [f"[Conversation between {my_name} and {their_name}]", ""]

    last_sender: Optional[Sender] = None
    for message in messages[-limit:]:
        if last_sender is not None and last_sender != message.sender:
            lines.append("")
        label = my_name if message.sender == Sender.SELF else their_name
        when = f" ({message.relative_time})" if message.relative_time else ""
        lines.append(f"[{label}]{when}: {message.content}")
        last_sender = message.sender

    return "\n".join(lines)


def build_summary(messages: List[Message], counterpart: UserProfile) -> str:
    """One-paragraph state of the conversation: who spoke last, counts, activity."""
    if not messages:
        return EMPTY_SUMMARY

    their_name = counterpart.name or "The other person"
    last = messages[-1]
    when = f" ({last.relative_time})" if last.relative_time else ""

    if last.sender == Sender.OTHER:
        summary = f"{their_name} sent the last message{when}. Awaiting your reply. "
    else:
        summary = f"You sent the last message{when}. "

    mine = sum(1 for m in messages if m.sender == Sender.SELF)
    theirs = len(messages) - mine
    summary += f"Conversation has {len(messages)} messages ({mine} from you, {theirs} from {their_name})."

    if any(m.is_recent for m in messages):
        summary += " Active conversation."
    return summary


def build_conversation_context(document: HostDocument, now: Optional[datetime] = None) -> ConversationContext:
    """
    Extract everything about the visible conversation.

    Args:
        document: Host document
        now: Current local time (defaults to datetime.now())

    Returns:
        A fresh, immutable ConversationContext
    """
    now = now or datetime.now()
    me, counterpart = resolve_profiles(document)
    messages = extract_messages(document, me, counterpart, now)
    last = messages[-1] if messages else None

    logger.debug(
        "Conversation context: self=%s counterpart=%s messages=%d last_sender=%s last=%s",
        me.name,
        counterpart.name,
        len(messages),
        last.sender.value if last else None,
        preview(last.content) if last else "",
    )

    return ConversationContext(
        messages=messages,
        formatted_transcript=format_transcript(messages, me, counterpart),
        self_profile=me,
        counterpart=counterpart,
        message_count=len(messages),
        conversation_age=messages[0].relative_time if messages else None,
        last_message_time=last.relative_time if last else None,
        last_message_sender=last.sender if last else None,
        has_unread_messages=bool(last and last.sender == Sender.OTHER),
        is_active=any(m.is_recent for m in messages),
        summary=build_summary(messages, counterpart),
    )


# =============================================================================
# Feed posts
# =============================================================================

def _closest_any(node: DocumentNode, concept: str) -> Optional[DocumentNode]:
    for selector in SELECTORS[concept]:
        found = node.closest(selector)
        if found is not None:
            return found
    return None


def find_post_container(document: HostDocument, active: Optional[DocumentNode] = None) -> Optional[DocumentNode]:
    """Post owning the focused comment box, else the first post with an open comment section."""
    if active is not None:
        box = _closest_any(active, "active_comment_box")
        if box is not None:
            container = _closest_any(box, "post_container")
            if container is not None:
                return container

    for section in resolve_all(document, "open_comment_section"):
        container = _closest_any(section, "post_container")
        if container is not None:
            return container
    return None


def classify_post(document: HostDocument, container: DocumentNode) -> PostKind:
    kind = PostKind.TEXT
    for concept, candidate in (
        ("post_image", PostKind.IMAGE),
        ("post_video", PostKind.VIDEO),
        ("post_article", PostKind.ARTICLE),
        ("post_celebration", PostKind.CELEBRATION),
    ):
        if resolve(document, concept, scope=container) is not None:
            kind = candidate
            break

    header = node_text(resolve(document, "post_celebration_header", scope=container))
    if "celebrating" in header.lower():
        kind = PostKind.CELEBRATION
    return kind


def extract_post_context(document: HostDocument, active: Optional[DocumentNode] = None) -> Optional[PostContext]:
    """
    Extract the post being commented on.

    Args:
        document: Host document
        active: Focused element, when known

    Returns:
        PostContext, or None when no post is found or a text post has no text
    """
    container = find_post_container(document, active)
    if container is None:
        logger.debug("Could not find post container")
        return None

    author_name = node_text(resolve(document, "post_author_name", scope=container)) or None
    author_headline = node_text(resolve(document, "post_author_headline", scope=container)) or None

    content = node_text(resolve(document, "post_content", scope=container))
    expanded = node_text(resolve(document, "post_expanded_content", scope=container))
    if expanded:
        content = expanded

    kind = classify_post(document, container)
    if not content and kind == PostKind.TEXT:
        logger.debug("Could not extract post content")
        return None

    return PostContext(
        author_name=author_name,
        author_headline=author_headline,
        content=content or f"[{kind.value} post]",
        post_kind=kind,
    )
