"""
Generation Actions
==================

The three entry points the trigger surface calls: generate a reply,
generate an outreach message, generate a feed comment.

Every action runs the same pipeline:

    limiter check -> credential check -> request validation ->
    research (bounded by a deadline) -> prompt synthesis ->
    record request -> completion call -> parse

and every failure is recovered here into a SuggestionResponse with an
empty suggestion list and a user-facing message. Nothing raises out of
an action.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Coroutine, Dict, List, Optional

from assist_core.errors import (
    NO_MESSAGES,
    NO_MESSAGES_USE_OUTREACH,
    NO_POST_CONTENT,
    NO_RECIPIENT,
    OUTREACH_PARSE_FAILURE_MESSAGE,
    PARSE_FAILURE_MESSAGE,
    UNEXPECTED_MESSAGE,
    AssistError,
    ErrorCategory,
    configuration_missing,
    failure_to_error,
    local_rate_limited,
)
from assist_core.extractor import EMPTY_TRANSCRIPT
from assist_core.prompts import (
    OperatorSettings,
    build_comment_prompt,
    build_comment_system_prompt,
    build_outreach_prompt,
    build_reply_prompt,
    build_reply_system_prompt,
)
from assist_core.research import (
    OUTREACH_RESEARCH_TIMEOUT,
    REPLY_RESEARCH_TIMEOUT,
    company_background_request,
    company_news_request,
    gather_with_deadline,
    person_activity_request,
    person_research_request,
    recent_company_news_request,
    run_research,
)
from assist_core.responses import SuggestionFamily, is_sentinel, parse_suggestions
from assist_core.tools_api import (
    KEY_API_KEY,
    CompletionOptions,
    CompletionService,
    ConfigStore,
)
from assist_runtime.config import AssistConfig, get_config
from assist_runtime.models import (
    ActionType,
    ConversationContext,
    GenerateCommentRequest,
    GenerateOutreachRequest,
    GenerateReplyRequest,
    ResearchSummary,
    SuggestionResponse,
)
from assist_runtime.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

REPLY_OPTIONS = CompletionOptions(max_output_tokens=1024)
COMMENT_OPTIONS = CompletionOptions(max_output_tokens=1024)
OUTREACH_OPTIONS = CompletionOptions(max_output_tokens=16000, reasoning_budget=10000)


def _error_response(error: AssistError) -> SuggestionResponse:
    return SuggestionResponse(suggestions=[], error=error.message, error_category=error.category.value)


class AssistService:
    """
    Runs generation actions against injected collaborators.

    Usage:
        service = AssistService(completion=client, store=store)
        response = await service.generate_reply(request)
        if response.error:
            show(response.error)
    """

    def __init__(
        self,
        completion: CompletionService,
        store: ConfigStore,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        config: Optional[AssistConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or get_config()
        self.completion = completion
        self.store = store
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            self.config.rate_limit_max_requests,
            self.config.rate_limit_window_ms,
        )
        self._clock = clock

    # =========================================================================
    # Pipeline steps
    # =========================================================================

    def _check_rate_limit(self) -> None:
        if not self.rate_limiter.can_make_request():
            raise local_rate_limited(self.rate_limiter.wait_seconds())

    def _api_key(self) -> str:
        api_key = (self.store.get(KEY_API_KEY) or "").strip()
        if not api_key:
            raise configuration_missing()
        return api_key

    async def _research(self, jobs: Dict[str, Coroutine[Any, Any, Optional[str]]], timeout: float) -> Dict[str, str]:
        if not jobs or not self.config.research_enabled:
            for job in jobs.values():
                job.close()
            return {}
        return await gather_with_deadline(jobs, timeout)

    async def _complete(
        self,
        prompt: str,
        api_key: str,
        system: Optional[str],
        options: CompletionOptions,
    ) -> str:
        self.rate_limiter.record_request()
        result = await self.completion.invoke(prompt, api_key=api_key, system=system, options=options)
        if not result.ok:
            error = failure_to_error(result)
            logger.warning("Completion failed (%s): %s", error.category.value, error.message)
            raise error
        if result.tool_activity_ignored:
            logger.debug("Ignored non-text content blocks in completion response")
        return result.text

    def _parse(self, raw: str, family: SuggestionFamily, failure_message: str) -> List[str]:
        suggestions = parse_suggestions(raw, family)
        if is_sentinel(suggestions):
            raise AssistError(ErrorCategory.PARSE_FAILURE, failure_message)
        return suggestions

    # =========================================================================
    # Actions
    # =========================================================================

    async def generate_reply(self, request: GenerateReplyRequest) -> SuggestionResponse:
        """
        Generate reply suggestions for an open conversation.

        Covers reply, follow_up, schedule_meeting and custom actions.
        Researches the counterpart's company news and recent activity first.
        """
        try:
            self._check_rate_limit()
            api_key = self._api_key()

            if not request.transcript or request.transcript == EMPTY_TRANSCRIPT:
                raise AssistError(ErrorCategory.EXTRACTION_MISS, NO_MESSAGES)

            settings = OperatorSettings.from_store(self.store)
            now = self._clock()
            counterpart = request.counterpart

            jobs = {}
            if counterpart.company:
                jobs["company_news"] = run_research(
                    self.completion, company_news_request(counterpart.company, now), api_key
                )
            if counterpart.name:
                jobs["person_activity"] = run_research(
                    self.completion, person_activity_request(counterpart, now), api_key
                )
            research = await self._research(jobs, self.config.research_timeout_seconds or REPLY_RESEARCH_TIMEOUT)

            system = build_reply_system_prompt(settings.tone)
            prompt = build_reply_prompt(
                request,
                settings,
                company_news=research.get("company_news"),
                person_activity=research.get("person_activity"),
                now=now,
            )

            raw = await self._complete(prompt, api_key, system, REPLY_OPTIONS)
            suggestions = self._parse(raw, SuggestionFamily.MESSAGE, PARSE_FAILURE_MESSAGE)
            logger.info("Generated %d %s suggestions", len(suggestions), request.action_type.value)
            return SuggestionResponse(suggestions=suggestions)

        except AssistError as e:
            return _error_response(e)
        except Exception as e:
            logger.exception("Generate reply error")
            return SuggestionResponse(
                suggestions=[], error=str(e) or UNEXPECTED_MESSAGE, error_category=ErrorCategory.UNEXPECTED.value
            )

    async def generate_outreach(self, request: GenerateOutreachRequest) -> SuggestionResponse:
        """
        Generate a first message to the counterpart.

        Runs company background, recent company news and person research
        in parallel under the longer outreach deadline, and returns the
        research texts with the suggestions.
        """
        try:
            self._check_rate_limit()
            api_key = self._api_key()

            counterpart = request.counterpart
            if not counterpart.name:
                raise AssistError(ErrorCategory.EXTRACTION_MISS, NO_RECIPIENT)

            settings = OperatorSettings.from_store(self.store)
            now = self._clock()

            jobs = {}
            if counterpart.company:
                jobs["company"] = run_research(
                    self.completion, company_background_request(counterpart.company, settings.user_context), api_key
                )
                jobs["recent_news"] = run_research(
                    self.completion, recent_company_news_request(counterpart.company, now), api_key
                )
            jobs["person"] = run_research(self.completion, person_research_request(counterpart), api_key)
            research = await self._research(
                jobs, self.config.outreach_research_timeout_seconds or OUTREACH_RESEARCH_TIMEOUT
            )

            prompt = build_outreach_prompt(
                request,
                settings,
                company_research=research.get("company"),
                person_research=research.get("person"),
                recent_news=research.get("recent_news"),
            )

            raw = await self._complete(prompt, api_key, None, OUTREACH_OPTIONS)
            suggestions = self._parse(raw, SuggestionFamily.MESSAGE, OUTREACH_PARSE_FAILURE_MESSAGE)
            logger.info("Generated %d outreach suggestions", len(suggestions))
            return SuggestionResponse(
                suggestions=suggestions,
                research=ResearchSummary(
                    company=research.get("company"),
                    person=research.get("person"),
                    recent_news=research.get("recent_news"),
                ),
            )

        except AssistError as e:
            return _error_response(e)
        except Exception as e:
            logger.exception("Generate outreach error")
            return SuggestionResponse(
                suggestions=[], error=str(e) or UNEXPECTED_MESSAGE, error_category=ErrorCategory.UNEXPECTED.value
            )

    async def generate_comment(self, request: GenerateCommentRequest) -> SuggestionResponse:
        """Generate one-liner comments for a feed post."""
        try:
            self._check_rate_limit()
            api_key = self._api_key()

            if not request.post.content.strip():
                raise AssistError(ErrorCategory.EXTRACTION_MISS, NO_POST_CONTENT)

            settings = OperatorSettings.from_store(self.store)
            system = build_comment_system_prompt(settings.tone)
            prompt = build_comment_prompt(request, settings)

            raw = await self._complete(prompt, api_key, system, COMMENT_OPTIONS)
            suggestions = self._parse(raw, SuggestionFamily.COMMENT, PARSE_FAILURE_MESSAGE)
            logger.info("Generated %d %s comments", len(suggestions), request.comment_type.value)
            return SuggestionResponse(suggestions=suggestions)

        except AssistError as e:
            return _error_response(e)
        except Exception as e:
            logger.exception("Generate comment error")
            return SuggestionResponse(
                suggestions=[], error=str(e) or UNEXPECTED_MESSAGE, error_category=ErrorCategory.UNEXPECTED.value
            )

    async def run_conversation_action(
        self,
        context: ConversationContext,
        action_type: ActionType,
        custom_prompt: Optional[str] = None,
    ) -> SuggestionResponse:
        """
        Route a quick action picked on an extracted conversation.

        Outreach goes to generate_outreach; every other action needs at
        least one message and goes to generate_reply.
        """
        if action_type == ActionType.OUTREACH:
            return await self.generate_outreach(
                GenerateOutreachRequest(
                    self_profile=context.self_profile,
                    counterpart=context.counterpart,
                    custom_prompt=custom_prompt,
                )
            )

        if context.message_count == 0:
            return _error_response(AssistError(ErrorCategory.EXTRACTION_MISS, NO_MESSAGES_USE_OUTREACH))

        return await self.generate_reply(GenerateReplyRequest.from_context(context, action_type, custom_prompt))
