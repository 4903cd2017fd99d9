"""
Page Capture Tests
==================

Tests for snapshotting a Playwright page, using a mocked Page.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from assist_core.dom import POSITION_ATTR
from assist_core.selectors import SHADOW_HOST_SELECTOR, resolve
from assist_runtime.models import DocumentPayload
from assist_runtime.page_capture import capture_page, positioned_selectors, to_document
from conftest import conversation_page

URL = "https://www.linkedin.com/feed/"


def mock_page(shadow=None, error=None):
    page = MagicMock()
    page.url = URL
    page.content = AsyncMock(return_value="<html><body><div id='feed'>feed</div></body></html>")
    page.evaluate = AsyncMock(return_value=shadow or [], side_effect=error)
    return page


class TestCapturePage:
    """Tests for capture_page."""

    @pytest.mark.asyncio
    async def test_captures_document_and_shadow_root(self):
        page = mock_page(shadow=[conversation_page()])
        payload = await capture_page(page)

        assert payload.url == URL
        assert "id='feed'" in payload.html or 'id="feed"' in payload.html
        assert len(payload.shadow_html) == 1

        script, args = page.evaluate.call_args.args
        assert "getBoundingClientRect" in script
        assert args == [positioned_selectors(), POSITION_ATTR, SHADOW_HOST_SELECTOR]

    @pytest.mark.asyncio
    async def test_stamping_failure_still_captures(self):
        page = mock_page(error=PlaywrightError("Execution context was destroyed"))
        payload = await capture_page(page)
        assert payload.shadow_html == []
        assert payload.html.startswith("<html>")


class TestToDocument:
    def test_shadow_html_becomes_detached_tree(self):
        payload = DocumentPayload(html="<div>page</div>", shadow_html=[conversation_page()], url=URL)
        doc = to_document(payload)
        assert doc.url == URL
        assert len(doc.detached) == 1
        assert resolve(doc, "message_input") is not None

    def test_positioned_selectors_unique(self):
        selectors = positioned_selectors()
        assert len(selectors) == len(set(selectors))
        assert ".msg-s-message-group" in selectors
        assert ".msg-s-message-list__time-heading" in selectors
