"""
Research Tests
==============

Tests for research request builders, result filtering, and the
join-with-deadline primitive.
"""

import asyncio
from datetime import datetime

import pytest

from assist_core.research import (
    company_background_request,
    company_news_request,
    gather_with_deadline,
    person_activity_request,
    person_research_request,
    recent_company_news_request,
    recent_date_range,
    run_research,
)
from assist_runtime.models import UserProfile
from conftest import NOW, FakeCompletion

ALEX = UserProfile(name="Alex Kim", headline="Senior Engineer", company="Globex")


class TestRequests:
    """Tests for research prompts and options."""

    def test_date_range(self):
        assert recent_date_range(NOW) == ("October", 2025, "September")
        assert recent_date_range(datetime(2025, 1, 10)) == ("January", 2025, "December")

    def test_company_news(self):
        request = company_news_request("Globex", NOW)
        assert '"Globex news October 2025"' in request.prompt
        assert "(September - October 2025)" in request.prompt
        assert request.options.web_search_max_uses == 5
        assert request.options.max_output_tokens == 8000
        assert request.options.reasoning_budget == 5000
        assert request.empty_marker == "no recent news"

    def test_person_activity(self):
        request = person_activity_request(ALEX, NOW)
        assert request.prompt.startswith("Search for recent activity by Alex Kim (Senior Engineer) at Globex.")
        assert '"Alex Kim Globex 2025"' in request.prompt
        assert request.options.web_search_max_uses == 4

    def test_outreach_requests(self):
        news = recent_company_news_request("Globex", NOW)
        assert news.options.web_search_max_uses == 10
        assert news.empty_marker is None

        background = company_background_request("Globex", "builds data tools")
        assert "CONTEXT: I work at a company that builds data tools." in background.prompt
        assert "CONTEXT:" not in company_background_request("Globex").prompt

        person = person_research_request(ALEX.model_copy(update={"role_description": "Runs the SRE team."}))
        assert "JOB DESCRIPTION (from LinkedIn profile):\nRuns the SRE team." in person.prompt
        assert 'Their headline is "Senior Engineer"' in person.prompt


class TestRunResearch:
    """Tests for filtering research results."""

    @pytest.mark.asyncio
    async def test_text_returned(self):
        completion = FakeCompletion(research_text="  - [Oct 2] Globex opened a Berlin office (Reuters)  ")
        text = await run_research(completion, company_news_request("Globex", NOW), "key")
        assert text == "- [Oct 2] Globex opened a Berlin office (Reuters)"
        assert completion.calls[0]["api_key"] == "key"
        assert completion.calls[0]["system"] is None

    @pytest.mark.asyncio
    async def test_nothing_found_is_absent(self):
        completion = FakeCompletion(research_text="No recent news found.")
        assert await run_research(completion, company_news_request("Globex", NOW), "key") is None

    @pytest.mark.asyncio
    async def test_marker_only_applies_where_configured(self):
        completion = FakeCompletion(research_text="No recent news found. Older: 2023 Series B.")
        text = await run_research(completion, recent_company_news_request("Globex", NOW), "key")
        assert text == "No recent news found. Older: 2023 Series B."

    @pytest.mark.asyncio
    async def test_failure_and_empty_are_absent(self):
        assert await run_research(FakeCompletion(), person_activity_request(ALEX, NOW), "key") is None
        empty = FakeCompletion(research_text="   ")
        assert await run_research(empty, person_activity_request(ALEX, NOW), "key") is None


class TestGatherWithDeadline:
    """Tests for concurrent lookups with a deadline."""

    @pytest.mark.asyncio
    async def test_keeps_only_timely_values(self):
        """Late jobs are cancelled; errors and None are absent."""
        cancelled = []

        async def fast():
            return "fast"

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append("slow")
                raise
            return "late"

        async def boom():
            raise RuntimeError("lookup failed")

        async def nothing():
            return None

        loop = asyncio.get_running_loop()
        started = loop.time()
        results = await gather_with_deadline(
            {"fast": fast(), "slow": slow(), "boom": boom(), "none": nothing()},
            timeout=0.05,
        )

        assert results == {"fast": "fast"}
        assert cancelled == ["slow"]
        assert loop.time() - started < 5

    @pytest.mark.asyncio
    async def test_runs_concurrently(self):
        async def job(value):
            await asyncio.sleep(0.05)
            return value

        loop = asyncio.get_running_loop()
        started = loop.time()
        results = await gather_with_deadline({"a": job(1), "b": job(2), "c": job(3)}, timeout=5)
        assert results == {"a": 1, "b": 2, "c": 3}
        assert loop.time() - started < 1

    @pytest.mark.asyncio
    async def test_no_jobs(self):
        assert await gather_with_deadline({}, timeout=1) == {}
