"""
Research
========

Web-search research requests issued before a generation call, and the
join-with-deadline primitive that runs them.

Research is best effort: a failed, empty or late lookup is simply absent
from the prompt and never aborts the action.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Dict, Mapping, Optional, Tuple

from assist_core.tools_api import CompletionOptions, CompletionService
from assist_runtime.models import UserProfile

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Deadline presets (seconds)
REPLY_RESEARCH_TIMEOUT = 30.0
OUTREACH_RESEARCH_TIMEOUT = 60.0


@dataclass(frozen=True)
class ResearchRequest:
    """One research lookup: prompt, completion options, and a phrase meaning "nothing found"."""
    name: str
    prompt: str
    options: CompletionOptions
    empty_marker: Optional[str] = None


def recent_date_range(now: datetime) -> Tuple[str, int, str]:
    """(current month name, current year, previous month name)."""
    previous = 12 if now.month == 1 else now.month - 1
    return MONTH_NAMES[now.month - 1], now.year, MONTH_NAMES[previous - 1]


def _person_context(profile: UserProfile) -> str:
    parts = [profile.name or ""]
    if profile.headline:
        parts.append(f"({profile.headline})")
    if profile.company:
        parts.append(f"at {profile.company}")
    return " ".join(p for p in parts if p)


# =============================================================================
# Reply flows
# =============================================================================

def company_news_request(company: str, now: datetime) -> ResearchRequest:
    current_month, year, last_month = recent_date_range(now)
    prompt = f"""Search for recent news about "{company}" company from the last 1-3 months ({last_month} - {current_month} {year}).

DO THESE SEARCHES:
1. "{company} news {current_month} {year}"
2. "{company} announcement funding launch {year}"

Find: funding rounds, product launches, partnerships, acquisitions, leadership changes, or major milestones.

OUTPUT FORMAT (be concise - 3-4 bullet points max):
- [Date] What happened (source)

If no recent news found, say "No recent news found.\""""
    return ResearchRequest(
        name="company_news",
        prompt=prompt,
        options=CompletionOptions(max_output_tokens=8000, reasoning_budget=5000, web_search_max_uses=5),
        empty_marker="no recent news",
    )


def person_activity_request(person: UserProfile, now: datetime) -> ResearchRequest:
    _, year, _ = recent_date_range(now)
    prompt = f"""Search for recent activity by {_person_context(person)}.

DO THESE SEARCHES:
1. "{person.name} LinkedIn"
2. "{person.name} {person.company or ''} {year}"

Find: Recent posts, articles, podcast appearances, conference talks, or notable achievements.

OUTPUT FORMAT (be concise - 2-3 bullet points max):
- What they've been talking about or doing recently

If nothing specific found, say "No recent activity found.\""""
    return ResearchRequest(
        name="person_activity",
        prompt=prompt,
        options=CompletionOptions(max_output_tokens=8000, reasoning_budget=5000, web_search_max_uses=4),
        empty_marker="no recent activity found",
    )


# =============================================================================
# Outreach flow
# =============================================================================

def recent_company_news_request(company: str, now: datetime) -> ResearchRequest:
    current_month, year, last_month = recent_date_range(now)
    prompt = f"""Find the MOST RECENT news about "{company}" company from the last 1-3 months ({last_month} - {current_month} {year}).

DO THESE SPECIFIC SEARCHES:
1. Search: "{company} news {current_month} {year}"
2. Search: "{company} announcement {year}"
3. Search: "{company} funding OR raised OR investment {year}"
4. Search: "{company} launch OR launched OR release {year}"
5. Search: "{company} partnership OR partner OR acquisition {year}"
6. Search: "{company} hiring OR expansion OR growth {year}"

For each search, look for NEWS ARTICLES from reputable sources (TechCrunch, Forbes, Bloomberg, Reuters, industry publications, company press releases).

REPORT ONLY:
- **Date** of the news (be specific: "January 15, 2025" not just "recently")
- **Source** (where you found it)
- **What happened** (1-2 sentences)

If you find NO recent news (last 3 months), say "No recent news found" and briefly mention the most recent news you CAN find, even if older.

FORMAT:
📰 RECENT NEWS (Last 1-3 months):
- [Date] [Source]: What happened
- [Date] [Source]: What happened

🕐 OLDER NEWS (if no recent news):
- [Date] [Source]: What happened"""
    return ResearchRequest(
        name="recent_news",
        prompt=prompt,
        options=CompletionOptions(max_output_tokens=16000, reasoning_budget=8000, web_search_max_uses=10),
    )


def company_background_request(company: str, user_context: Optional[str] = None) -> ResearchRequest:
    context = ""
    if user_context:
        context = (
            f"\n\nCONTEXT: I work at a company that {user_context}. "
            "Find information that would help me understand if/how we could help them."
        )
    prompt = f"""Research "{company}" company. I need specific, actionable information to craft a personalized cold outreach message.{context}

SEARCH STRATEGY - Do multiple searches:
1. Search: "{company} company products services" - understand what they do
2. Search: "{company} news 2024 2025" - find recent announcements
3. Search: "{company} challenges problems" - find pain points
4. Search: "{company} hiring jobs" - understand growth areas and needs
5. Search: "{company} competitors" - understand their market

EXTRACT AND REPORT:
1. **What They Do**: Core products/services in plain language
2. **Recent News** (last 6 months): Funding, launches, partnerships, acquisitions, leadership changes
3. **Pain Points & Challenges**: What problems might they be facing? (scaling, hiring, tech debt, competition, etc.)
4. **Growth Areas**: Where are they investing? What roles are they hiring for?
5. **Tech Stack** (if relevant): What technologies do they use?
6. **Conversation Hooks**: Specific recent events or achievements I could reference

Be SPECIFIC. Don't give generic statements. I need concrete details I can reference in my outreach."""
    return ResearchRequest(
        name="company",
        prompt=prompt,
        options=CompletionOptions(max_output_tokens=16000, reasoning_budget=10000, web_search_max_uses=8),
    )


def person_research_request(person: UserProfile) -> ResearchRequest:
    job_context = ""
    if person.role_description:
        job_context = (
            f"\n\nJOB DESCRIPTION (from LinkedIn profile):\n{person.role_description}\n\n"
            "⚠️ NOTE: This job description may be from a PAST position, not their current role. "
            f"Their headline is \"{person.headline or 'unknown'}\". Only reference this description "
            "if it clearly matches their current role in the headline. If it seems to be from a past job, ignore it."
        )
    prompt = f"""Research {_person_context(person)}. I need specific information to write a personalized cold outreach message.{job_context}

SEARCH STRATEGY - Do multiple targeted searches:
1. Search: "{person.name} LinkedIn" - find their profile and recent posts
2. Search: "{person.name} {person.company or ''}" - find mentions with their company
3. Search: "{person.name} podcast OR interview OR conference OR speaking" - find thought leadership
4. Search: "{person.name} article OR blog OR post" - find content they've created

EXTRACT AND REPORT:
1. **Recent LinkedIn Activity**: What have they posted about recently? What topics do they engage with?
2. **Thought Leadership**: Podcasts, conference talks, articles, or interviews they've done
3. **Career Highlights**: Notable achievements, awards, promotions, or career moves
4. **Topics They Care About**: Based on their content, what are they passionate about?
5. **Communication Style**: How do they write? Formal? Casual? Technical? Inspirational?
6. **Specific Hooks**: Concrete things I can reference (a specific post, talk, article, achievement)

IMPORTANT:
- Be SPECIFIC. Give me exact titles of posts, talks, or articles if you find them.
- If you can't find much about this person, say so clearly and suggest what might work as an angle based on their role/headline.
- Don't make things up - only report what you actually find."""
    return ResearchRequest(
        name="person",
        prompt=prompt,
        options=CompletionOptions(max_output_tokens=16000, reasoning_budget=10000, web_search_max_uses=8),
    )


# =============================================================================
# Execution
# =============================================================================

async def run_research(
    completion: CompletionService,
    request: ResearchRequest,
    api_key: str,
) -> Optional[str]:
    """
    Run one lookup.

    Returns:
        Research text, or None on failure, empty text, or a "nothing found" reply
    """
    result = await completion.invoke(request.prompt, api_key=api_key, options=request.options)
    if not result.ok:
        logger.warning("Research %s failed: %s", request.name, result.failure.value if result.failure else "unknown")
        return None

    text = (result.text or "").strip()
    if not text:
        return None
    if request.empty_marker and request.empty_marker in text.lower():
        logger.debug("Research %s found nothing", request.name)
        return None
    return text


async def gather_with_deadline(
    jobs: Mapping[str, Awaitable[Any]],
    timeout: float,
) -> Dict[str, Any]:
    """
    Run named coroutines concurrently and keep what finishes in time.

    Jobs still running at the deadline are cancelled; their results are
    never used. A job that raised or returned None is absent from the result.

    Args:
        jobs: Name -> coroutine
        timeout: Deadline in seconds

    Returns:
        Name -> result for jobs that completed with a value before the deadline
    """
    if not jobs:
        return {}

    tasks = {name: asyncio.ensure_future(job) for name, job in jobs.items()}
    done, pending = await asyncio.wait(tasks.values(), timeout=timeout)

    for task in pending:
        task.cancel()
    if pending:
        logger.warning("Research deadline of %.0fs reached; abandoning %d lookup(s)", timeout, len(pending))
        await asyncio.gather(*pending, return_exceptions=True)

    results: Dict[str, Any] = {}
    for name, task in tasks.items():
        if task not in done or task.cancelled():
            continue
        error = task.exception()
        if error is not None:
            logger.warning("Research %s raised: %s", name, error)
            continue
        value = task.result()
        if value is not None:
            results[name] = value
    return results
