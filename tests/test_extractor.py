"""
Message Extractor Tests
=======================

Tests for sender attribution, conversation context assembly, transcript
and summary formatting, and feed post extraction.
"""

import pytest
from pydantic import ValidationError

from assist_core.dom import parse_document
from assist_core.extractor import (
    EMPTY_SUMMARY,
    EMPTY_TRANSCRIPT,
    build_conversation_context,
    build_summary,
    classify_post,
    extract_post_context,
    format_transcript,
)
from assist_core.extractor import classify_sender
from assist_runtime.models import Message, PostKind, Sender, UserProfile
from conftest import NOW, conversation_page, date_separator, feed_page, message_group


def _message(sender, content, relative_time=None, is_recent=False):
    return Message(
        sender=sender,
        sender_display_name="x",
        content=content,
        relative_time=relative_time,
        is_recent=is_recent,
    )


class TestClassifySender:
    """Tests for self/other attribution."""

    @pytest.mark.parametrize("sender,self_name,counterpart,expected", [
        ("Sam Rivera", "Sam Rivera", "Alex Kim", Sender.SELF),
        ("Alex Kim", "Sam Rivera", "Alex Kim", Sender.OTHER),
        ("Sam", "Sam Rivera", "Alex Kim", Sender.SELF),
        ("Kim", "Sam Rivera", "Alex Kim", Sender.OTHER),
        # Equal first-name matches go to self
        ("Alex", "Alex Rivera", "Alex Kim", Sender.SELF),
        # Matches neither but both names known
        ("Jordan Lee", "Sam Rivera", "Alex Kim", Sender.SELF),
        # Matches neither and self unknown
        ("Jordan Lee", None, "Alex Kim", Sender.OTHER),
        (None, "Sam Rivera", "Alex Kim", Sender.OTHER),
    ])
    def test_attribution(self, sender, self_name, counterpart, expected):
        assert classify_sender(sender, self_name, counterpart) == expected

    def test_structural_marker_wins(self):
        """A self-sent marker is trusted even when the name says otherwise."""
        assert classify_sender("Alex Kim", "Sam Rivera", "Alex Kim", structural_self=True) == Sender.SELF


class TestConversationContext:
    """End-to-end extraction from a conversation page."""

    def _page(self):
        return parse_document(conversation_page(thread=[
            date_separator("Today"),
            message_group(
                "Alex Kim",
                ["Hi Sam, are you free Thursday?", "Reach me at alex@globex.com"],
                timestamp="1:30 PM",
            ),
            message_group("Sam Rivera", ["Thursday works. Agenda: https://docs.example.com/a"], timestamp="1:45 PM"),
        ]))

    def test_messages_attributed_and_ordered(self):
        context = build_conversation_context(self._page(), NOW)
        assert [m.sender for m in context.messages] == [Sender.OTHER, Sender.OTHER, Sender.SELF]
        assert context.messages[0].content == "Hi Sam, are you free Thursday?"
        assert context.messages[0].sender_display_name == "Alex Kim"
        assert context.messages[2].sender_display_name == "Sam Rivera"

    def test_contact_details_redacted(self):
        """Emails and links never survive extraction."""
        context = build_conversation_context(self._page(), NOW)
        assert context.messages[1].content == "Reach me at [EMAIL]"
        assert context.messages[2].content == "Thursday works. Agenda: [LINK]"
        assert "globex.com" not in context.formatted_transcript

    def test_timestamps_and_activity(self):
        context = build_conversation_context(self._page(), NOW)
        assert context.messages[0].relative_time == "30m ago"
        assert context.messages[2].relative_time == "15m ago"
        assert context.messages[2].is_recent is True
        assert context.conversation_age == "30m ago"
        assert context.last_message_time == "15m ago"
        assert context.is_active is True

    def test_derived_fields(self):
        context = build_conversation_context(self._page(), NOW)
        assert context.message_count == 3
        assert context.last_message_sender == Sender.SELF
        assert context.has_unread_messages is False
        assert context.self_profile.name == "Sam Rivera"
        assert context.counterpart.name == "Alex Kim"
        assert context.counterpart.company == "Globex"

    def test_transcript(self):
        """Blank line at each change of sender."""
        context = build_conversation_context(self._page(), NOW)
        assert context.formatted_transcript.split("\n") == [
            "[Conversation between Sam Rivera and Alex Kim]",
            "",
            "[Alex Kim] (30m ago): Hi Sam, are you free Thursday?",
            "[Alex Kim] (30m ago): Reach me at [EMAIL]",
            "",
            "[Sam Rivera] (15m ago): Thursday works. Agenda: [LINK]",
        ]

    def test_summary(self):
        context = build_conversation_context(self._page(), NOW)
        assert context.summary == (
            "You sent the last message (15m ago). "
            "Conversation has 3 messages (1 from you, 2 from Alex Kim). Active conversation."
        )

    def test_context_is_immutable(self):
        context = build_conversation_context(self._page(), NOW)
        with pytest.raises(ValidationError):
            context.message_count = 10

    def test_nested_values_are_immutable(self):
        """Messages and profiles inside the context cannot be changed either."""
        context = build_conversation_context(self._page(), NOW)
        assert isinstance(context.messages, tuple)
        with pytest.raises(AttributeError):
            context.messages.append(context.messages[0])
        with pytest.raises(ValidationError):
            context.messages[0].content = "edited"
        with pytest.raises(ValidationError):
            context.counterpart.name = "Someone Else"

    def test_unknown_sender_with_unknown_self_is_other(self):
        """A third name with no known self name is attributed to the other side."""
        doc = parse_document(conversation_page(
            self_alt=None,
            thread=[message_group("Jordan Lee", ["Quick question about the role"])],
        ))
        context = build_conversation_context(doc, NOW)
        assert context.self_profile.name is None
        assert context.counterpart.name == "Alex Kim"
        assert context.messages[0].sender == Sender.OTHER
        assert context.messages[0].sender_display_name == "Jordan Lee"
        assert context.has_unread_messages is True

    def test_individual_items_when_no_groups(self):
        """Without sender groups, items are read one by one with structural self markers."""
        doc = parse_document(conversation_page(thread=[
            '<li class="msg-s-message-list__event">'
            '<a class="msg-s-event-listitem__profile-link">Alex Kim</a>'
            '<p class="msg-s-event-listitem__body">Call me on 555-123-4567</p></li>',
            '<li class="msg-s-message-list__event msg-s-message-list__event--self-sent">'
            '<p class="msg-s-event-listitem__body">Sent from me</p></li>',
        ]))
        context = build_conversation_context(doc, NOW)
        assert [m.sender for m in context.messages] == [Sender.OTHER, Sender.SELF]
        assert context.messages[0].content == "Call me on [PHONE]"
        assert context.messages[1].sender_display_name == "Sam Rivera"
        assert context.messages[1].relative_time is None
        assert context.is_active is False

    def test_no_thread(self):
        context = build_conversation_context(parse_document("<div></div>"), NOW)
        assert context.message_count == 0
        assert context.messages == ()
        assert context.formatted_transcript == EMPTY_TRANSCRIPT
        assert context.summary == EMPTY_SUMMARY
        assert context.last_message_sender is None
        assert context.has_unread_messages is False


class TestTranscript:
    """Tests for transcript and summary formatting."""

    def test_limited_to_most_recent(self):
        messages = [_message(Sender.OTHER, f"msg {i}") for i in range(20)]
        lines = format_transcript(messages, UserProfile(name="Sam"), UserProfile(name="Alex")).split("\n")
        assert len(lines) == 17
        assert lines[2] == "[Alex]: msg 5"
        assert lines[-1] == "[Alex]: msg 19"

    def test_placeholder_names(self):
        transcript = format_transcript([_message(Sender.OTHER, "hi")], UserProfile(), UserProfile())
        assert transcript == "[Conversation between ME and THEM]\n\n[THEM]: hi"

    def test_empty(self):
        assert format_transcript([], UserProfile(), UserProfile()) == EMPTY_TRANSCRIPT

    def test_summary_awaiting_reply(self):
        messages = [
            _message(Sender.SELF, "Hello"),
            _message(Sender.OTHER, "Hi there", relative_time="3d ago"),
        ]
        summary = build_summary(messages, UserProfile(name="Alex Kim"))
        assert summary == (
            "Alex Kim sent the last message (3d ago). Awaiting your reply. "
            "Conversation has 2 messages (1 from you, 1 from Alex Kim)."
        )

    def test_summary_unknown_counterpart(self):
        summary = build_summary([_message(Sender.OTHER, "Hi")], UserProfile())
        assert summary.startswith("The other person sent the last message. Awaiting your reply.")

    def test_summary_empty(self):
        assert build_summary([], UserProfile()) == EMPTY_SUMMARY


class TestPostExtraction:
    """Tests for reading the post being commented on."""

    def test_text_post(self):
        post = extract_post_context(parse_document(feed_page()))
        assert post.author_name == "Priya Shah"
        assert post.author_headline == "Product Lead at Initech"
        assert post.content == "Shipped our new onboarding flow today. Took three rewrites."
        assert post.post_kind == PostKind.TEXT

    def test_media_post_without_text(self):
        """A media post with no text gets a placeholder."""
        doc = parse_document(feed_page(content="", media='<div class="update-components-image"><img src="x.png"></div>'))
        post = extract_post_context(doc)
        assert post.post_kind == PostKind.IMAGE
        assert post.content == "[image post]"

    def test_text_post_without_text(self):
        assert extract_post_context(parse_document(feed_page(content=""))) is None

    def test_expanded_text_preferred(self):
        doc = parse_document(feed_page(
            content="Short version...",
            media='<div class="feed-shared-inline-show-more-text--expanded">The whole story, unabridged.</div>',
        ))
        assert extract_post_context(doc).content == "The whole story, unabridged."

    def test_no_open_comment_box(self):
        assert extract_post_context(parse_document(feed_page(comment_box=False))) is None

    def test_focused_comment_box_picks_post(self):
        """The focused element decides which post is meant."""
        doc = parse_document("""
            <div class="feed-shared-update-v2" data-urn="a">
              <div class="feed-shared-update-v2__description">First post</div>
              <div class="comments-comment-box"></div>
            </div>
            <div class="feed-shared-update-v2" data-urn="b">
              <div class="feed-shared-update-v2__description">Second post</div>
              <div class="comments-comment-box"><div id="target" contenteditable="true"></div></div>
            </div>
        """)
        active = doc.root.select_one("#target")
        assert extract_post_context(doc, active).content == "Second post"
        assert extract_post_context(doc).content == "First post"


class TestClassifyPost:
    """Tests for post kind detection."""

    def _kind(self, media):
        doc = parse_document(feed_page(media=media))
        container = doc.root.select_one(".feed-shared-update-v2")
        return classify_post(doc, container)

    def test_first_marker_wins(self):
        """Image is checked before video."""
        assert self._kind('<div class="feed-shared-image"></div><video></video>') == PostKind.IMAGE

    def test_video_and_article(self):
        assert self._kind("<video></video>") == PostKind.VIDEO
        assert self._kind('<div class="feed-shared-article"></div>') == PostKind.ARTICLE

    def test_celebrating_header(self):
        header = '<div class="update-components-header">Priya is celebrating 5 years at Initech</div>'
        assert self._kind(header) == PostKind.CELEBRATION

    def test_plain_text(self):
        assert self._kind("") == PostKind.TEXT
