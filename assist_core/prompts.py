"""
Prompt Synthesizer
==================

Assembles the requests sent to the completion service. Sections appear in
a fixed order and each is included only when its backing data is present:

    action header -> custom request -> about me -> about recipient ->
    research -> operator rules -> tone -> conversation state ->
    transcript / post -> final output instruction

System prompts are separate constants per action family (reply, comment).
Outreach sends no system prompt; its tone and rules live in the user prompt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from assist_core.language import (
    BASE_LANGUAGE,
    CONVERSATION_FUNCTION_WORDS,
    POST_FUNCTION_WORDS,
    detect_language,
)
from assist_core.timestamps import MONTH_ABBREVIATIONS
from assist_core.tools_api import (
    KEY_CUSTOM_INSTRUCTIONS,
    KEY_MEETING_LINK,
    KEY_OUTREACH_INSTRUCTIONS,
    KEY_TONE,
    KEY_USER_CONTEXT,
    ConfigStore,
)
from assist_runtime.models import (
    ActionType,
    CommentType,
    GenerateCommentRequest,
    GenerateOutreachRequest,
    GenerateReplyRequest,
    PostKind,
    Sender,
    Tone,
    UserProfile,
)


# =============================================================================
# Operator settings
# =============================================================================

@dataclass
class OperatorSettings:
    """Operator preferences read from the configuration store."""
    tone: Tone = Tone.PROFESSIONAL
    user_context: Optional[str] = None
    custom_instructions: Optional[str] = None
    outreach_instructions: Optional[str] = None
    meeting_link: Optional[str] = None

    @classmethod
    def from_store(cls, store: ConfigStore) -> "OperatorSettings":
        return cls(
            tone=Tone.parse(store.get(KEY_TONE)),
            user_context=store.get(KEY_USER_CONTEXT),
            custom_instructions=store.get(KEY_CUSTOM_INSTRUCTIONS),
            outreach_instructions=store.get(KEY_OUTREACH_INSTRUCTIONS),
            meeting_link=store.get(KEY_MEETING_LINK),
        )


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


# =============================================================================
# Canned guidance
# =============================================================================

TONE_DESCRIPTIONS: Dict[Tone, str] = {
    Tone.PROFESSIONAL: "formal and business-appropriate, using proper grammar and professional language",
    Tone.FRIENDLY: "warm and personable while still being appropriate for professional networking",
    Tone.CASUAL: "relaxed and conversational, like messaging a colleague you know well",
}

OUTREACH_TONE_DESCRIPTIONS: Dict[Tone, str] = {
    Tone.PROFESSIONAL: "formal and business-appropriate",
    Tone.FRIENDLY: "warm and personable while still professional",
    Tone.CASUAL: "relaxed and conversational",
}

TONE_GUIDELINES: Dict[Tone, List[str]] = {
    Tone.PROFESSIONAL: [
        "Use complete sentences with proper punctuation",
        "Avoid contractions when possible",
        "Be respectful and courteous",
        "Focus on value and professionalism",
    ],
    Tone.FRIENDLY: [
        "Use a warm, approachable tone",
        "Contractions are fine",
        "Show genuine interest",
        "Be personable but professional",
    ],
    Tone.CASUAL: [
        "Keep it conversational",
        "Short, punchy sentences are okay",
        "Feel free to use light humor if appropriate",
        "Match their energy level",
    ],
}

ACTION_INSTRUCTIONS: Dict[ActionType, str] = {
    ActionType.REPLY: "Generate a natural, contextual reply to continue the conversation.",
    ActionType.FOLLOW_UP: """Generate a follow-up message. CRITICAL: Check the TIME CONTEXT below!
- If significant time has passed (weeks/months), DO NOT respond to their last message as if it just happened
- Instead, ACKNOWLEDGE the time gap and check if NOW is a better time
- If they previously mentioned being busy/having a project/deadline, reference it as likely COMPLETED now
- Example: If 3 months ago they said "busy with a project", write "Hope the project went well! Is now a better time to connect?"
- DO NOT write responses like "No problem, I understand you're busy" - that ship has sailed months ago!""",
    ActionType.SCHEDULE_MEETING: """Generate messages to propose a meeting/call:
- Suggest a call or meeting to discuss further
- Offer flexibility on timing
- Be specific but not presumptuous""",
    ActionType.OUTREACH: """Generate a personalized cold outreach message:
- This is a FIRST MESSAGE - there is no prior conversation
- Use the RESEARCH DATA provided to personalize the message
- Reference something specific and recent about them or their company (from the research)
- Don't be generic - mention specific achievements, posts, company news, or shared interests
- Keep it brief (2-4 sentences) - no one reads long cold messages
- Have a clear but soft call-to-action (e.g., "Would love to connect" or "Open to a quick chat?")
- DO NOT be salesy or pushy
- DO NOT use templates like "I came across your profile" - be specific about what caught your attention
- Focus on providing value or genuine interest, not asking for things""",
    ActionType.CUSTOM: "Follow the specific custom instruction provided.",
}

COMMENT_TYPE_INSTRUCTIONS: Dict[CommentType, str] = {
    CommentType.SUPPORTIVE: """Generate a casual, supportive one-liner:
- Quick and genuine reaction
- Like texting a friend about something cool they shared""",
    CommentType.INSIGHTFUL: """Generate a casual one-liner that adds a quick thought:
- Brief perspective or "same here" vibe
- Conversational, not preachy""",
    CommentType.QUESTION: """Generate a casual curious question:
- Quick genuine question, like asking a friend
- Not formal or interview-style""",
    CommentType.CONGRATULATE: """Generate a casual congrats one-liner:
- Quick celebratory reaction
- Like high-fiving a colleague""",
    CommentType.CUSTOM: "Follow the specific custom instruction provided, but keep it casual and brief.",
}

STALE_ROLE_WARNING = """⚠️ IMPORTANT: This job description may be from a PAST role, not their current position!
   - Their headline says: "{headline}"
   - Only reference this job description if it clearly matches their CURRENT role in the headline
   - If the headline mentions a different company/role, this description is likely outdated - DO NOT reference it as their current work
   - When in doubt, focus on their headline and company, not the job description"""


# =============================================================================
# Time-gap advisory
# =============================================================================

GAP_THREE_PLUS_MONTHS = (
    "3+ months have passed - If they mentioned being busy/having a project, reference it as likely "
    'completed ("Hope the project went well!") and ask if now is a better time to connect.'
)
GAP_MONTHS_NATURAL = (
    "About {months} months have passed - Acknowledge the time gap naturally and ask if timing is better now. "
    "If they mentioned a project/busy period, reference it positively."
)
GAP_MONTHS = (
    "About {months} months have passed - Acknowledge the time gap and ask if timing is better now. "
    "If they mentioned a project/busy period, reference it positively."
)
GAP_ONE_TWO_MONTHS = "1-2 months have passed - Mention the time gap briefly and check if timing is better now."
GAP_ABOUT_A_MONTH = "About a month has passed - Acknowledge the time and ask if timing is better now."

_YEARS_AGO = re.compile(r"(\d+)\s*years?\s*ago")
_MONTHS_AGO = re.compile(r"(\d+)\s*months?\s*ago")
_WEEKS_AGO = re.compile(r"(?:about\s+)?(\d+)\s*weeks?\s*ago")
_MINUTES_AGO = re.compile(r"(\d+)\s*m(?:in)?(?:ute)?s?\s*ago")
_HOURS_AGO = re.compile(r"(\d+)\s*h(?:our)?s?\s*ago")
_DAYS_AGO = re.compile(r"(\d+)\s*d(?:ay)?s?\s*ago")
_MONTH_DAY = re.compile(r"(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)\s+(\d+)")


def _gap_for_days(days: int) -> Optional[str]:
    if days < 30:
        return None
    if days < 60:
        return GAP_ONE_TWO_MONTHS
    if days < 90:
        return GAP_MONTHS.format(months=days // 30)
    return GAP_THREE_PLUS_MONTHS


def analyze_time_gap(last_message_time: Optional[str], now: Optional[datetime] = None) -> Optional[str]:
    """
    Advisory about how long the conversation has been quiet.

    Buckets: under a month nothing; 1-2 months a brief acknowledgement;
    2-3 months acknowledge and reference the earlier blocker positively;
    3+ months treat the earlier blocker as resolved.

    Args:
        last_message_time: Relative-time label of the last message
        now: Current local time, for bare "Mon D" labels

    Returns:
        Advisory text, or None when no advisory applies
    """
    if not last_message_time:
        return None
    text = last_message_time.lower()

    if _YEARS_AGO.search(text):
        return GAP_THREE_PLUS_MONTHS

    months = _MONTHS_AGO.search(text)
    if months:
        count = int(months.group(1))
        if count >= 3:
            return GAP_THREE_PLUS_MONTHS
        if count >= 2:
            return GAP_MONTHS_NATURAL.format(months=count)
        return GAP_ONE_TWO_MONTHS

    weeks = _WEEKS_AGO.search(text)
    if weeks:
        return GAP_ABOUT_A_MONTH if int(weeks.group(1)) >= 4 else None

    if _MINUTES_AGO.search(text) or _HOURS_AGO.search(text):
        return None

    days = _DAYS_AGO.search(text)
    if days:
        return _gap_for_days(int(days.group(1)))

    if "today" in text or "just now" in text or "yesterday" in text:
        return None

    month_day = _MONTH_DAY.search(text)
    if month_day:
        now = now or datetime.now()
        today = now.date()
        month = MONTH_ABBREVIATIONS.index(month_day.group(1)) + 1
        day = int(month_day.group(2))
        try:
            sent = date(today.year, month, day)
            if sent > today:
                sent = date(today.year - 1, month, day)
        except ValueError:
            return None
        return _gap_for_days((today - sent).days)

    return None


# =============================================================================
# Shared sections
# =============================================================================

def _profile_lines(profile: UserProfile) -> List[str]:
    lines = []
    if profile.name:
        lines.append(f"Name: {profile.name}")
    if profile.headline:
        lines.append(f"Role: {profile.headline}")
    if profile.company:
        lines.append(f"Company: {profile.company}")
    return lines


def _role_description_lines(profile: UserProfile) -> List[str]:
    if not profile.role_description:
        return []
    return [
        "",
        "**Job Description from LinkedIn profile:**",
        profile.role_description,
        "",
        STALE_ROLE_WARNING.format(headline=profile.headline or "unknown"),
    ]


def _action_title(action: str) -> str:
    # Only the first underscore becomes a space
    return action.upper().replace("_", " ", 1)


# =============================================================================
# Reply family
# =============================================================================

def build_reply_system_prompt(tone: Tone) -> str:
    """System prompt for replies, follow-ups, meeting proposals and custom requests."""
    guidelines = "\n".join(f"- {g}" for g in TONE_GUIDELINES[tone])
    return f"""You are a LinkedIn messaging assistant generating contextually appropriate replies.

TONE: {TONE_DESCRIPTIONS[tone]}

GUIDELINES:
{guidelines}

MESSAGE FORMAT IN CONVERSATION:
- [Name]: means that person sent the message
- The user you're helping is identified as the person asking for suggestions
- Generate replies FOR the user to send

RULES:
- Generate exactly 3 different reply options
- Each should feel natural and human-written
- Be concise (1-3 sentences typically)
- No emojis unless the conversation uses them
- No excessive punctuation or enthusiasm
- If they asked a question, at least one reply should answer it
- Vary approaches: direct answer, add value, move conversation forward

LANGUAGE DETECTION (CRITICAL):
- First, identify what language the OTHER person (recipient) is writing in
- Reply in THE SAME LANGUAGE they are using
- If they write in German, reply in German. French → French. Spanish → Spanish. etc.
- Only consider the recipient's messages, not the user's messages
- If the conversation is in English, reply in English
- Do NOT assume language from names - a person named "Flávia" writing in English should get English replies

OUTPUT: Return ONLY a JSON array of 3 strings:
["Reply 1", "Reply 2", "Reply 3"]"""


def _conversation_state_lines(request: GenerateReplyRequest, now: Optional[datetime]) -> List[str]:
    lines = ["=== CONVERSATION STATE ===", request.summary]
    if not (request.last_message_sender and request.last_message_time):
        return lines

    follow_up = request.action_type == ActionType.FOLLOW_UP
    gap = analyze_time_gap(request.last_message_time, now) if follow_up else None

    if request.last_message_sender == Sender.OTHER:
        lines.append(f"→ {request.counterpart.name or 'They'} messaged {request.last_message_time}. Awaiting my reply.")
        if gap:
            lines.append(f"→ TIME CONTEXT: {gap}")
    else:
        lines.append(f"→ I sent the last message {request.last_message_time}.")
        if not request.is_active:
            lines.append("→ Conversation has been quiet.")
        if follow_up:
            if gap:
                lines.append(f"→ TIME CONTEXT: {gap}")
            lines.append("→ Re-engage without sounding pushy.")
    return lines


def build_reply_prompt(
    request: GenerateReplyRequest,
    settings: OperatorSettings,
    company_news: Optional[str] = None,
    person_activity: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    User prompt for the reply family.

    Args:
        request: Conversation request
        settings: Operator preferences
        company_news: Research text about the counterpart's company
        person_activity: Research text about the counterpart
        now: Current local time for the time-gap advisory

    Returns:
        Prompt text
    """
    action = request.action_type
    counterpart = request.counterpart
    lines: List[str] = [f"=== GENERATE {_action_title(action.value)} SUGGESTIONS ===\n"]
    lines.append(ACTION_INSTRUCTIONS[action])
    lines.append("")

    if action == ActionType.CUSTOM and request.custom_prompt:
        lines.append(f"USER'S SPECIFIC REQUEST: {request.custom_prompt}")
        lines.append("")

    lines.append("=== ABOUT ME (the person you're writing for) ===")
    lines.extend(_profile_lines(request.self_profile))
    if _clean(settings.user_context):
        lines.append(f"Additional context: {_clean(settings.user_context)}")
    lines.append("")

    lines.append("=== ABOUT THE RECIPIENT ===")
    lines.extend(_profile_lines(counterpart))
    lines.extend(_role_description_lines(counterpart))
    lines.append("")

    if company_news and counterpart.company:
        lines.append(f"=== 🔥 RECENT NEWS: {counterpart.company.upper()} ===")
        lines.append(company_news)
        lines.append("")
        lines.append("💡 TIP: If relevant to the conversation, referencing recent news shows you're informed and engaged.")
        lines.append("")

    if person_activity and counterpart.name:
        lines.append(f"=== {counterpart.name.upper()}'S RECENT ACTIVITY ===")
        lines.append(person_activity)
        lines.append("")
        lines.append("💡 TIP: Reference their posts/activity if it naturally fits - it creates connection.")
        lines.append("")

    if _clean(settings.custom_instructions):
        lines.append("=== MY RULES (always follow) ===")
        lines.append(_clean(settings.custom_instructions))
        lines.append("")

    if action == ActionType.SCHEDULE_MEETING and _clean(settings.meeting_link):
        lines.append("=== MY SCHEDULING LINK ===")
        lines.append(f"Include this link when proposing a meeting: {_clean(settings.meeting_link)}")
        lines.append(
            "Naturally incorporate the link into the message "
            "(e.g., \"Here's my calendar: [link]\" or \"Feel free to grab a time: [link]\")"
        )
        lines.append("")

    lines.extend(_conversation_state_lines(request, now))
    lines.append("")

    lines.append("=== CONVERSATION HISTORY ===")
    lines.append(request.transcript)
    lines.append("")

    final = "Generate 3 reply options as a JSON array. Match the language the recipient is using."
    language = detect_language(request.counterpart_text, CONVERSATION_FUNCTION_WORDS)
    if language != BASE_LANGUAGE:
        final += f" Write ALL replies in {language}."
    lines.append(final)

    return "\n".join(lines)


# =============================================================================
# Outreach
# =============================================================================

OUTREACH_BRIEF = """Generate a personalized cold outreach message for LinkedIn.
This is a FIRST MESSAGE - there is no prior conversation history.

CRITICAL REQUIREMENTS:
1. **Lead with SPECIFIC research** - Reference something concrete: a specific post they wrote, a recent company announcement, a talk they gave, a challenge they might face
2. **Show you did your homework** - Don't say "I saw your profile" - say "Your post about [specific topic] resonated with me because..."
3. **Connect to their world** - Frame your outreach around THEIR priorities and challenges, not yours
4. **Keep it brief** - 2-4 sentences max. No one reads long cold messages.
5. **Soft CTA** - "Would love to exchange ideas" or "Open to a quick chat?" NOT "Let me show you a demo"
6. **Sound human** - Write like a real person, not a sales template

AVOID:
- "I came across your profile" (too generic)
- "I'm reaching out because" (boring opener)
- Long paragraphs about your company
- Multiple questions
- Overly formal language
- Mentioning research you didn't actually do
- Referencing a job description as their CURRENT work if they've moved on (always check if their headline matches the job description - if not, it's likely from a past role!)"""

OUTREACH_OPTIONS = """Generate 3 different outreach message options as a JSON array: ["Option 1", "Option 2", "Option 3"]

Each option MUST take a different angle:
- **Option 1**: Lead with something about THEM personally (their post, talk, article, achievement)
- **Option 2**: Lead with something about their COMPANY (recent news, growth, challenges)
- **Option 3**: Lead with a shared interest, mutual connection, or industry insight

Each message should be 2-4 sentences and feel genuinely personalized based on the research above."""


def outreach_language(recipient: UserProfile) -> str:
    """Language of the recipient's profile text (headline, role description, company)."""
    text = " ".join(v for v in (recipient.headline, recipient.role_description, recipient.company) if v)
    return detect_language(text, CONVERSATION_FUNCTION_WORDS)


def build_outreach_prompt(
    request: GenerateOutreachRequest,
    settings: OperatorSettings,
    company_research: Optional[str] = None,
    person_research: Optional[str] = None,
    recent_news: Optional[str] = None,
) -> str:
    """User prompt for a first message; sent without a system prompt."""
    me = request.self_profile
    recipient = request.counterpart
    language = outreach_language(recipient)

    lines: List[str] = ["=== GENERATE PERSONALIZED OUTREACH MESSAGE ===", "", OUTREACH_BRIEF, ""]

    if request.custom_prompt:
        lines.append(f"SPECIFIC REQUEST: {request.custom_prompt}")
        lines.append("")

    lines.append("=== ABOUT ME (the person sending the message) ===")
    lines.extend(_profile_lines(me))
    if _clean(settings.user_context):
        lines.append(f"Background: {_clean(settings.user_context)}")
    lines.append("")

    lines.append("=== ABOUT THE RECIPIENT ===")
    lines.extend(_profile_lines(recipient))
    lines.extend(_role_description_lines(recipient))
    lines.append("")

    if recent_news and recipient.company:
        lines.append(f"=== 🔥 RECENT NEWS: {recipient.company.upper()} (LAST 1-3 MONTHS) ===")
        lines.append(recent_news)
        lines.append("")
        lines.append("⚡ IMPORTANT: If there is recent news above, strongly consider referencing it in your outreach!")
        lines.append("   Recent news is the BEST conversation starter - it shows you did your homework.")
        lines.append("")

    if person_research:
        lines.append(f"=== RESEARCH: {(recipient.name or 'recipient').upper()} ===")
        lines.append(person_research)
        lines.append("")

    if company_research and recipient.company:
        lines.append(f"=== COMPANY BACKGROUND: {recipient.company.upper()} ===")
        lines.append(company_research)
        lines.append("")

    if _clean(settings.outreach_instructions):
        lines.append("=== OUTREACH INSTRUCTIONS (follow carefully) ===")
        lines.append(_clean(settings.outreach_instructions))
        lines.append("")

    if _clean(settings.custom_instructions):
        lines.append("=== ADDITIONAL RULES ===")
        lines.append(_clean(settings.custom_instructions))
        lines.append("")

    lines.append(f"TONE: {OUTREACH_TONE_DESCRIPTIONS[settings.tone]}")
    lines.append("")

    final = OUTREACH_OPTIONS
    if language != BASE_LANGUAGE:
        lines.append(f"LANGUAGE: Write the message in {language} - the recipient's profile is in {language}.")
        lines.append("")
        final += f" Write ALL messages in {language}."
    lines.append(final)

    return "\n".join(lines)


# =============================================================================
# Comments
# =============================================================================

def build_comment_system_prompt(tone: Tone) -> str:
    """System prompt for feed comments; comments are always casual one-liners."""
    return """You generate casual LinkedIn comment one-liners.

STYLE: Casual, conversational, like texting a work friend. NOT corporate-speak.

RULES:
- Generate exactly 3 options
- ONE LINE ONLY. Max 10-15 words. Seriously, keep it short.
- Sound like a real person, not a LinkedIn influencer
- No emojis (unless the post has them)
- No hashtags
- No "Great post!", "Love this!", "This is so true!" - these are banned
- No "This resonates with me" or "I couldn't agree more" - too formal
- Be specific to what they actually said
- Match their energy - if they're casual, be casual
- IMPORTANT: Match the language of the post. If the post is in German, comment in German. Same for any other language.

GOOD EXAMPLES:
- "ha, learned this the hard way last quarter"
- "the second point is underrated tbh"
- "we ran into the same thing, ended up just rebuilding it"
- "curious how you handled the timeline on this?"

BAD EXAMPLES (don't do these):
- "What a fantastic insight! This really resonates with my experience in the industry."
- "Congratulations on this well-deserved achievement! Your hard work is truly inspiring."
- "Great post! Thanks for sharing your valuable perspective."

OUTPUT: Return ONLY a JSON array: ["comment 1", "comment 2", "comment 3"]"""


def build_comment_prompt(request: GenerateCommentRequest, settings: OperatorSettings) -> str:
    """User prompt for a feed comment."""
    post = request.post
    comment_type = request.comment_type
    lines: List[str] = [f"=== GENERATE {comment_type.value.upper()} COMMENT ===\n"]
    lines.append(COMMENT_TYPE_INSTRUCTIONS[comment_type])
    lines.append("")

    if comment_type == CommentType.CUSTOM and request.custom_prompt:
        lines.append(f"CUSTOM INSTRUCTION: {request.custom_prompt}")
        lines.append("")

    if _clean(settings.user_context):
        lines.append("=== ABOUT ME (the commenter) ===")
        lines.append(_clean(settings.user_context))
        lines.append("")

    if _clean(settings.custom_instructions):
        lines.append("=== MY RULES (always follow these) ===")
        lines.append(_clean(settings.custom_instructions))
        lines.append("")

    lines.append("=== POST DETAILS ===")
    if post.author_name:
        lines.append(f"Author: {post.author_name}")
    if post.author_headline:
        lines.append(f"Author Role: {post.author_headline}")
    if post.post_kind != PostKind.TEXT:
        lines.append(f"Post Type: {post.post_kind.value}")
    lines.append("")
    lines.append("=== POST CONTENT ===")
    lines.append(post.content)
    lines.append("")

    final = "Generate 3 casual one-liner comments (max 10-15 words each) as a JSON array."
    language = detect_language(post.content, POST_FUNCTION_WORDS)
    if language != BASE_LANGUAGE:
        lines.append("=== LANGUAGE ===")
        lines.append(f"The post is in {language}. You MUST write ALL comments in {language}.")
        lines.append("")
        final += f" Write ALL comments in {language}."
    lines.append(final)

    return "\n".join(lines)
