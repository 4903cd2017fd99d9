"""
Page Capture
============

Snapshots a live LinkedIn tab (Playwright async Page) into a
DocumentPayload the extractor can read offline.

Before serializing, the on-screen top offset of every message group,
message item and date separator is written to a data attribute so that
date-context lookups can compare vertical positions after parsing.
"""

from __future__ import annotations

import logging
from typing import List

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from assist_core.dom import POSITION_ATTR, HostDocument, parse_document
from assist_core.selectors import SELECTORS, SHADOW_HOST_SELECTOR
from assist_runtime.models import DocumentPayload

logger = logging.getLogger(__name__)

POSITIONED_CONCEPTS = ("message_group", "message_item", "message_list_item", "date_separator")

# Stamps offsets in the document and in the shadow root, returns the shadow root HTML
_STAMP_SCRIPT = """
([selectors, attr, hostSelector]) => {
    const stamp = (root) => {
        for (const selector of selectors) {
            let nodes = [];
            try { nodes = root.querySelectorAll(selector); } catch (e) { continue; }
            for (const node of nodes) {
                node.setAttribute(attr, String(Math.round(node.getBoundingClientRect().top)));
            }
        }
    };
    stamp(document);
    const host = document.querySelector(hostSelector);
    if (host && host.shadowRoot) {
        stamp(host.shadowRoot);
        return [host.shadowRoot.innerHTML];
    }
    return [];
}
"""


def positioned_selectors() -> List[str]:
    selectors: List[str] = []
    for concept in POSITIONED_CONCEPTS:
        for selector in SELECTORS[concept]:
            if selector not in selectors:
                selectors.append(selector)
    return selectors


async def capture_page(page: Page) -> DocumentPayload:
    """
    Capture the page's primary document and its messaging shadow root.

    Args:
        page: Playwright page showing LinkedIn

    Returns:
        DocumentPayload with html, shadow_html and url
    """
    try:
        shadow_html = await page.evaluate(
            _STAMP_SCRIPT,
            [positioned_selectors(), POSITION_ATTR, SHADOW_HOST_SELECTOR],
        )
    except PlaywrightError as e:
        logger.warning("Could not stamp element positions: %s", e)
        shadow_html = []

    html = await page.content()
    logger.debug("Captured %s (%d chars, %d shadow roots)", page.url, len(html), len(shadow_html))
    return DocumentPayload(html=html, shadow_html=list(shadow_html or []), url=page.url)


def to_document(payload: DocumentPayload) -> HostDocument:
    """Parse a captured payload into a HostDocument."""
    return parse_document(payload.html, payload.shadow_html, payload.url)
