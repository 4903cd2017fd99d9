"""
Assistant Runtime Models
========================

Pydantic models for the extracted conversation/post context and for the
request/response schemas of the generation actions.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enumerations
# ============================================================================


class Sender(str, Enum):
    """Who wrote a message, relative to the operator."""

    SELF = "self"
    OTHER = "other"


class Tone(str, Enum):
    """Operator-selected writing tone."""

    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    CASUAL = "casual"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Tone":
        """Parse a stored tone value, defaulting to professional."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.PROFESSIONAL


class ActionType(str, Enum):
    """Intent behind a message generation request."""

    REPLY = "reply"
    FOLLOW_UP = "follow_up"
    SCHEDULE_MEETING = "schedule_meeting"
    OUTREACH = "outreach"
    CUSTOM = "custom"


class CommentType(str, Enum):
    """Intent behind a comment generation request."""

    SUPPORTIVE = "supportive"
    INSIGHTFUL = "insightful"
    QUESTION = "question"
    CONGRATULATE = "congratulate"
    CUSTOM = "custom"


class PostKind(str, Enum):
    """Kind of feed post being commented on."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    ARTICLE = "article"
    CELEBRATION = "celebration"


# ============================================================================
# Extracted Context
# ============================================================================


class UserProfile(BaseModel):
    """Identity of the operator or of the conversation counterpart. Every field is optional."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(default=None, description="Display name")
    headline: Optional[str] = Field(default=None, description="Headline / current role")
    profile_url: Optional[str] = Field(default=None, description="Link to the profile page")
    company: Optional[str] = Field(default=None, description="Current company")
    role_description: Optional[str] = Field(
        default=None, description="Free-text role description from the profile page (may be stale)"
    )


class Message(BaseModel):
    """One message of a thread, attributed and sanitized."""

    model_config = ConfigDict(frozen=True)

    sender: Sender = Field(..., description="self or other")
    sender_display_name: str = Field(..., description="Name shown for the sender")
    content: str = Field(..., description="Sanitized message text")
    raw_timestamp: Optional[str] = Field(default=None, description="Timestamp text or ISO instant")
    relative_time: Optional[str] = Field(default=None, description="Relative-time label")
    is_recent: bool = Field(default=False, description="Within the recency window")


class ConversationContext(BaseModel):
    """Everything extracted from the visible conversation. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    messages: Tuple[Message, ...] = Field(default=(), description="Oldest first")
    formatted_transcript: str = Field(default="", description="Transcript of the most recent messages")
    self_profile: UserProfile = Field(default_factory=UserProfile, description="The operator")
    counterpart: UserProfile = Field(default_factory=UserProfile, description="The other party")
    message_count: int = Field(default=0)
    conversation_age: Optional[str] = Field(default=None, description="Relative time of the first message")
    last_message_time: Optional[str] = Field(default=None)
    last_message_sender: Optional[Sender] = Field(default=None)
    has_unread_messages: bool = Field(default=False)
    is_active: bool = Field(default=False, description="Any message is recent")
    summary: str = Field(default="")


class PostContext(BaseModel):
    """A feed post the operator is commenting on."""

    author_name: Optional[str] = Field(default=None)
    author_headline: Optional[str] = Field(default=None)
    content: str = Field(..., description="Post text, or a [<kind> post] placeholder")
    post_kind: PostKind = Field(default=PostKind.TEXT)


# ============================================================================
# Request Models
# ============================================================================


class GenerateReplyRequest(BaseModel):
    """Request to generate replies for an existing conversation."""

    transcript: str = Field(..., description="Formatted transcript")
    summary: str = Field(default="", description="Conversation summary sentence")
    self_profile: UserProfile = Field(default_factory=UserProfile)
    counterpart: UserProfile = Field(default_factory=UserProfile)
    last_message_sender: Optional[Sender] = Field(default=None)
    last_message_time: Optional[str] = Field(default=None)
    is_active: bool = Field(default=False)
    counterpart_text: str = Field(default="", description="Counterpart's messages, used for language detection")
    action_type: ActionType = Field(default=ActionType.REPLY)
    custom_prompt: Optional[str] = Field(default=None)

    @classmethod
    def from_context(
        cls,
        context: ConversationContext,
        action_type: ActionType = ActionType.REPLY,
        custom_prompt: Optional[str] = None,
    ) -> "GenerateReplyRequest":
        """Build a request from an extracted conversation."""
        return cls(
            transcript=context.formatted_transcript,
            summary=context.summary,
            self_profile=context.self_profile,
            counterpart=context.counterpart,
            last_message_sender=context.last_message_sender,
            last_message_time=context.last_message_time,
            is_active=context.is_active,
            counterpart_text=" ".join(
                m.content for m in context.messages if m.sender == Sender.OTHER
            ),
            action_type=action_type,
            custom_prompt=custom_prompt,
        )


class GenerateOutreachRequest(BaseModel):
    """Request to generate a first message to someone."""

    self_profile: UserProfile = Field(default_factory=UserProfile)
    counterpart: UserProfile = Field(default_factory=UserProfile)
    custom_prompt: Optional[str] = Field(default=None)


class GenerateCommentRequest(BaseModel):
    """Request to generate comments on a feed post."""

    post: PostContext = Field(..., description="Post being commented on")
    comment_type: CommentType = Field(default=CommentType.SUPPORTIVE)
    custom_prompt: Optional[str] = Field(default=None)


class DocumentPayload(BaseModel):
    """A captured page: primary HTML plus detached shadow-root HTML."""

    html: str = Field(..., description="Serialized primary document")
    shadow_html: List[str] = Field(default_factory=list, description="Serialized shadow roots")
    url: str = Field(default="", description="Page URL")


# ============================================================================
# Response Models
# ============================================================================


class ResearchSummary(BaseModel):
    """Research texts gathered for an outreach message."""

    company: Optional[str] = Field(default=None, description="Company background")
    person: Optional[str] = Field(default=None, description="Person research")
    recent_news: Optional[str] = Field(default=None, description="Recent company news")


class SuggestionResponse(BaseModel):
    """Result of a generation action: suggestions, or an error message."""

    suggestions: List[str] = Field(default_factory=list)
    error: Optional[str] = Field(default=None, description="User-facing error message")
    error_category: Optional[str] = Field(default=None, description="Error taxonomy category")
    research: Optional[ResearchSummary] = Field(default=None)


class OperatorSettingsPayload(BaseModel):
    """Operator settings as read or written through the runtime server. Unset fields are left alone on write."""

    claude_api_key: Optional[str] = Field(default=None, description="Credential (masked on read)")
    tone: Optional[Tone] = Field(default=None)
    user_context: Optional[str] = Field(default=None, description="Free-text background")
    custom_instructions: Optional[str] = Field(default=None)
    outreach_instructions: Optional[str] = Field(default=None)
    meeting_link: Optional[str] = Field(default=None, description="Scheduling link URL")
