"""
Assist Tests Configuration
==========================

Pytest configuration and fixtures: synthetic LinkedIn page builders, a
fixed clock, an in-memory settings store and a scripted completion service.
"""

from datetime import datetime
from typing import List, Optional, Sequence

import pytest

from assist_core.tools_api import KEY_API_KEY, CompletionOptions, CompletionResult
from assist_runtime.config import AssistConfig, set_config
from assist_runtime.rate_limiter import reset_rate_limiter
from host_tools.config_store.store import InMemoryStore

# Wednesday afternoon
NOW = datetime(2025, 10, 15, 14, 0)


# ============================================================================
# Page builders
# ============================================================================


def message_group(
    sender: str,
    bodies: Sequence[str],
    timestamp: Optional[str] = None,
    datetime_attr: Optional[str] = None,
) -> str:
    """One sender's run of messages."""
    stamp = ""
    if timestamp is not None or datetime_attr is not None:
        attr = f' datetime="{datetime_attr}"' if datetime_attr else ""
        stamp = f'<time class="msg-s-message-group__timestamp"{attr}>{timestamp or ""}</time>'
    items = "".join(
        f'<div class="msg-s-event-listitem"><p class="msg-s-event-listitem__body">{body}</p></div>'
        for body in bodies
    )
    return (
        '<li class="msg-s-message-list__event">'
        f'<div class="msg-s-message-group">'
        f'<span class="msg-s-message-group__name">{sender}</span>{stamp}{items}'
        "</div></li>"
    )


def date_separator(text: str) -> str:
    return f'<li class="msg-s-message-list__time-heading">{text}</li>'


def conversation_page(
    thread: Sequence[str] = (),
    counterpart: Optional[str] = "Alex Kim",
    headline: Optional[str] = "Senior Engineer at Globex | Cloud",
    self_alt: Optional[str] = "Photo of Sam Rivera",
    extra: str = "",
) -> str:
    """A chat overlay bubble with a header, a thread and a message box."""
    nav = f'<img class="global-nav__me-photo" alt="{self_alt}">' if self_alt else ""
    name = (
        f'<h2 class="msg-overlay-bubble-header__title">'
        f'<a href="https://www.linkedin.com/in/alexkim/">{counterpart}</a></h2>'
        if counterpart
        else ""
    )
    subtitle = f'<span class="msg-overlay-bubble-header__subtitle">{headline}</span>' if headline else ""
    return f"""
    <html><body>
      <header class="global-nav">{nav}</header>
      {extra}
      <div class="msg-overlay-conversation-bubble">
        <div class="msg-overlay-bubble-header">{name}{subtitle}</div>
        <div class="msg-s-message-list-container">
          <ul class="msg-s-message-list-content">{"".join(thread)}</ul>
        </div>
        <form class="msg-form">
          <div class="msg-form__contenteditable" contenteditable="true" role="textbox"></div>
        </form>
      </div>
    </body></html>
    """


def feed_page(
    content: str = "Shipped our new onboarding flow today. Took three rewrites.",
    author: str = "Priya Shah",
    author_headline: str = "Product Lead at Initech",
    media: str = "",
    comment_box: bool = True,
) -> str:
    """A feed with one post, optionally with its comment box open."""
    box = '<div class="comments-comment-box"><div class="ql-editor" contenteditable="true"></div></div>' if comment_box else ""
    return f"""
    <html><body>
      <div class="feed-shared-update-v2" data-urn="urn:li:activity:1">
        <div class="update-components-actor__name"><span aria-hidden="true">{author}</span></div>
        <div class="update-components-actor__description">{author_headline}</div>
        <div class="feed-shared-update-v2__description">{content}</div>
        {media}
        {box}
      </div>
    </body></html>
    """


# ============================================================================
# Collaborators
# ============================================================================


class FakeCompletion:
    """
    Scripted completion service.

    Generation calls return `result`; research calls (web search enabled)
    return `research_text`, or a failure when it is None.
    """

    def __init__(
        self,
        text: str = '["Sounds great, talk soon!", "Thanks for the update, Alex.", "Happy to help with that."]',
        result: Optional[CompletionResult] = None,
        research_text: Optional[str] = None,
    ):
        self.result = result or CompletionResult.success(text)
        self.research_text = research_text
        self.calls: List[dict] = []

    @property
    def generation_calls(self) -> List[dict]:
        return [c for c in self.calls if not c["research"]]

    @property
    def research_calls(self) -> List[dict]:
        return [c for c in self.calls if c["research"]]

    async def invoke(
        self,
        prompt: str,
        *,
        api_key: str,
        system: Optional[str] = None,
        options: Optional[CompletionOptions] = None,
    ) -> CompletionResult:
        research = bool(options and options.web_search_max_uses)
        self.calls.append(
            {"prompt": prompt, "system": system, "options": options, "api_key": api_key, "research": research}
        )
        if research:
            if self.research_text is None:
                from assist_core.tools_api import FailureKind
                return CompletionResult.failed(FailureKind.HTTP_ERROR, status_code=500)
            return CompletionResult.success(self.research_text, tool_activity_ignored=True)
        return self.result


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_globals():
    """Fresh config and limiter for every test."""
    set_config(AssistConfig())
    reset_rate_limiter()
    yield
    set_config(None)
    reset_rate_limiter()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return InMemoryStore({KEY_API_KEY: "sk-ant-test-key-1234"})


@pytest.fixture
def completion():
    return FakeCompletion()
