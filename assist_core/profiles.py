"""
Profile Resolver
================

Works out who the operator is (self) and who they are talking to
(counterpart) from whatever the page happens to show.

Counterpart resolution is anchored on the message input so that profile
content elsewhere on the page (a profile page behind the chat overlay,
feed cards) is not mistaken for the recipient. Each strategy may fill
name, headline or profile URL; the first value found for a field wins.

No field is ever required. Every miss propagates as None.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from assist_core.dom import DocumentNode, HostDocument, node_text
from assist_core.selectors import SELECTORS, iter_candidates, resolve, resolve_all, resolve_with
from assist_runtime.models import UserProfile

logger = logging.getLogger(__name__)

PHOTO_PREFIX_RE = re.compile(r"^photo\s*(of)?\s*", re.IGNORECASE)
DEGREE_SUFFIX_RE = re.compile(r"\s*·\s*(1st|2nd|3rd|\d+).*$")
COMPANY_RE = re.compile(r"(?:\bat|@)\s+(.+?)(?:\s*[|•·-]|$)", re.IGNORECASE)
DATE_PREFIX_RE = re.compile(r"^(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d", re.IGNORECASE)
PILL_CLOSE_RE = re.compile(r"[×✕✖]")

PILL_EXCLUDED_CLASSES = ("nav", "tab")
NON_NAME_LABELS = {"Posts", "About", "Activity", "View", "See", "New message"}
HEADLINE_KEYWORDS = (" at ", "Manager", "Director", "Engineer", "Architect", "Founder", "CEO", "VP")
COMPANY_NOISE = ("Present", "·", "yr", "mo")
ROLE_KEYWORDS = ("Lead", "Manage", "Develop", "Support", "Drive", "Build", "Create", "Responsible")

NAME_MIN, NAME_MAX = 3, 99
HEADLINE_MIN, HEADLINE_MAX = 21, 199
COMPANY_MIN, COMPANY_MAX = 2, 99
BOLD_COMPANY_MIN, BOLD_COMPANY_MAX = 3, 79
ROLE_MIN, ROLE_MAX = 51, 2999
ROLE_FALLBACK_MIN, ROLE_FALLBACK_MAX = 101, 1999


# =============================================================================
# Name comparison
# =============================================================================

def match_strength(candidate: Optional[str], known: Optional[str]) -> int:
    """
    Fuzzy name comparison.

    Returns:
        3 exact, 2 same first name (longer than 2 chars), 1 substring, 0 none
    """
    if not candidate or not known:
        return 0
    a = candidate.lower().strip()
    b = known.lower().strip()
    if not a or not b:
        return 0
    if a == b:
        return 3
    first_a, first_b = a.split()[0], b.split()[0]
    if first_a == first_b and len(first_a) > 2:
        return 2
    if a in b or b in a:
        return 1
    return 0


def names_match(candidate: Optional[str], known: Optional[str]) -> bool:
    """True for any fuzzy match (exact, first name, or substring)."""
    return match_strength(candidate, known) > 0


def _within(text: str, low: int, high: int) -> bool:
    return low <= len(text) <= high


def _clean_name(text: str) -> str:
    return DEGREE_SUFFIX_RE.sub("", text).strip()


# =============================================================================
# Self
# =============================================================================

def _photo_label(node: DocumentNode) -> str:
    alt = (node.attr("alt") or "").strip()
    if len(alt) <= 2:
        return ""
    return PHOTO_PREFIX_RE.sub("", alt).strip()


def _first_value(document: HostDocument, concept: str, read) -> str:
    """First non-empty value read from a concept's selectors, tried one by one."""
    for selector in SELECTORS[concept]:
        node = resolve_with(document, (selector,))
        if node is None:
            continue
        value = read(node)
        if value:
            return value
    return ""


def resolve_self_name(document: HostDocument) -> Optional[str]:
    """
    Operator name from the navigation chrome.

    Order: nav avatar label, identity-module actor link, profile-card
    link, any "Photo of X" image label. First non-empty wins.
    """
    strategies = (
        ("nav_photo", "self_nav_photo", _photo_label),
        ("actor_link", "self_actor_link", node_text),
        ("photo_alt", "self_photo_alt", _photo_label),
    )
    for label, concept, read in strategies:
        value = _first_value(document, concept, read)
        if value:
            logger.debug("Self name from %s", label)
            return value
    return None


def resolve_self_profile(document: HostDocument) -> UserProfile:
    """Operator profile: name, headline and the company named in the headline."""
    headline = node_text(resolve(document, "self_headline")) or None
    return UserProfile(
        name=resolve_self_name(document),
        headline=headline,
        company=extract_company(headline),
    )


def collect_sender_names(document: HostDocument) -> List[str]:
    """Distinct sender names shown in the thread, in document order."""
    thread = resolve(document, "message_thread")
    if thread is None:
        return []

    names: List[str] = []
    for group in resolve_all(document, "message_group", scope=thread):
        name = node_text(resolve(document, "message_group_sender", scope=group))
        if name and name not in names:
            names.append(name)
    for node in thread.select(SELECTORS["thread_sender_name"][0]):
        name = node_text(node)
        if name and name not in names:
            names.append(name)
    return names


def infer_self_name(sender_names: Iterable[str], counterpart_name: Optional[str]) -> Optional[str]:
    """
    Infer the operator's name from the thread's senders.

    Only runs when the counterpart's name is known and actually appears
    among the senders: the one remaining sender that does not match the
    counterpart is taken as self. Zero or several candidates leave self
    unresolved.
    """
    if not counterpart_name:
        return None

    names = list(sender_names)
    if not any(names_match(name, counterpart_name) for name in names):
        return None

    candidates = [name for name in names if not names_match(name, counterpart_name)]
    if len(candidates) != 1:
        logger.debug("Self inference skipped: %d candidates", len(candidates))
        return None
    return candidates[0]


# =============================================================================
# Counterpart
# =============================================================================

@dataclass
class _Draft:
    """Counterpart fields collected across strategies; first found wins."""

    name: Optional[str] = None
    headline: Optional[str] = None
    profile_url: Optional[str] = None

    def offer(self, source: str, name=None, headline=None, profile_url=None) -> None:
        if name and not self.name:
            self.name = name
            logger.debug("Counterpart name from %s", source)
        if headline and not self.headline:
            self.headline = headline
            logger.debug("Counterpart headline from %s", source)
        if profile_url and not self.profile_url:
            self.profile_url = profile_url

    @property
    def complete(self) -> bool:
        return bool(self.name and self.headline)


def find_compose_surface(document: HostDocument) -> Optional[DocumentNode]:
    """The overlay or compose surface that owns the active message input."""
    anchor = resolve(document, "message_input")
    if anchor is None:
        return None

    for selector in SELECTORS["compose_surface"]:
        surface = anchor.closest(selector)
        if surface is not None:
            return surface

    # Two msg- levels up from the input
    scope_selector = SELECTORS["compose_scope_fallback"][0]
    inner = anchor.closest(scope_selector)
    if inner is not None and inner.parent is not None:
        return inner.parent.closest(scope_selector)
    return None


def _from_pill(document: HostDocument, surface: DocumentNode, draft: _Draft) -> None:
    for node in iter_candidates(document, "compose_pill", scope=surface):
        classes = node.attr("class") or ""
        if any(word in classes for word in PILL_EXCLUDED_CLASSES):
            continue
        text = PILL_CLOSE_RE.sub("", node_text(node)).strip()
        if _within(text, NAME_MIN, NAME_MAX) and text not in NON_NAME_LABELS:
            draft.offer("pill", name=text)
            return


def _from_lockup(document: HostDocument, surface: DocumentNode, draft: _Draft) -> None:
    for card in iter_candidates(document, "compose_lockup", scope=surface):
        title = _clean_name(node_text(resolve(document, "lockup_title", scope=card)))
        if _within(title, NAME_MIN, NAME_MAX):
            draft.offer("lockup", name=title)

        subtitle = node_text(resolve(document, "lockup_subtitle", scope=card))
        draft.offer("lockup", headline=subtitle or None)

        link = resolve(document, "profile_link", scope=card)
        if link is not None:
            draft.offer("lockup", profile_url=link.attr("href"))

        if draft.complete:
            return


def _from_links(document: HostDocument, surface: DocumentNode, draft: _Draft) -> None:
    if draft.name:
        return
    for link in iter_candidates(document, "profile_link", scope=surface):
        text = node_text(link)
        if _within(text, NAME_MIN, NAME_MAX) and text not in NON_NAME_LABELS:
            draft.offer("profile link", name=_clean_name(text), profile_url=link.attr("href"))
            return


def _from_headings(document: HostDocument, surface: DocumentNode, draft: _Draft) -> None:
    if draft.name:
        return
    for heading in iter_candidates(document, "compose_heading", scope=surface):
        text = node_text(heading)
        if _within(text, NAME_MIN, NAME_MAX) and text not in NON_NAME_LABELS:
            draft.offer("heading", name=_clean_name(text))
            return


def _from_role_text(document: HostDocument, surface: DocumentNode, draft: _Draft) -> None:
    if draft.headline:
        return
    for node in iter_candidates(document, "compose_text", scope=surface):
        text = node_text(node)
        if _within(text, HEADLINE_MIN, HEADLINE_MAX) and any(k in text for k in HEADLINE_KEYWORDS):
            draft.offer("role text", headline=text)
            return


def _from_page(document: HostDocument, draft: _Draft) -> None:
    """Conversation-page fallbacks outside any compose surface."""
    if not draft.name:
        header = resolve(document, "conversation_header")
        if header is not None:
            for node in iter_candidates(document, "header_name", scope=header):
                text = node_text(node)
                if text:
                    draft.offer("conversation header", name=text)
                    break
            else:
                draft.offer("conversation header", name=node_text(header) or None)

    if not draft.profile_url:
        for selector in SELECTORS["recipient_profile_link"]:
            link = resolve_with(document, (selector,))
            if link is not None and link.attr("href"):
                draft.offer("recipient link", name=node_text(link) or None, profile_url=link.attr("href"))
                break

    if not draft.headline:
        for selector in SELECTORS["recipient_headline"]:
            text = node_text(resolve_with(document, (selector,)))
            if text:
                draft.offer("recipient headline", headline=text)
                break


def resolve_counterpart_profile(document: HostDocument) -> UserProfile:
    """
    Counterpart profile for the visible conversation or compose surface.

    Inside the compose surface, in order: pill label, name+subtitle card,
    profile link, heading, role-keyword paragraph. Then conversation-page
    fallbacks. Company comes from the headline, else the profile page's
    experience section.
    """
    draft = _Draft()

    surface = find_compose_surface(document)
    if surface is not None:
        for strategy in (_from_pill, _from_lockup, _from_links, _from_headings, _from_role_text):
            strategy(document, surface, draft)

    _from_page(document, draft)

    company = extract_company(draft.headline) or extract_company_from_profile(document)
    return UserProfile(
        name=draft.name,
        headline=draft.headline,
        profile_url=draft.profile_url,
        company=company,
        role_description=extract_role_description(document),
    )


# =============================================================================
# Company and role
# =============================================================================

def extract_company(headline: Optional[str]) -> Optional[str]:
    """Company named in a "<role> at <company>" / "<role> @ <company>" headline."""
    if not headline:
        return None
    match = COMPANY_RE.search(headline)
    if not match:
        return None
    return match.group(1).strip() or None


def _looks_like_company(text: str) -> bool:
    return (
        _within(text, COMPANY_MIN, COMPANY_MAX)
        and not any(noise in text for noise in COMPANY_NOISE)
        and not text[:1].isdigit()
        and not DATE_PREFIX_RE.match(text)
    )


def extract_company_from_profile(document: HostDocument) -> Optional[str]:
    """Current company from a visible profile page's experience section."""
    for node in iter_candidates(document, "experience_company"):
        text = node_text(node)
        if _looks_like_company(text):
            logger.debug("Company from experience section")
            return text

    section = resolve(document, "experience_section")
    if section is None:
        return None
    container = section.closest("section")
    if container is None and section.parent is not None:
        container = section.parent.parent
    if container is None:
        return None

    for node in iter_candidates(document, "experience_bold", scope=container):
        text = node_text(node)
        if (
            _within(text, BOLD_COMPANY_MIN, BOLD_COMPANY_MAX)
            and "Experience" not in text
            and "Present" not in text
            and not text[:1].isdigit()
            and not DATE_PREFIX_RE.match(text)
        ):
            logger.debug("Company from experience bold text")
            return text
    return None


def extract_role_description(document: HostDocument) -> Optional[str]:
    """Free-text description of the current role from a visible profile page."""
    for node in iter_candidates(document, "experience_description"):
        text = node_text(node)
        if _within(text, ROLE_MIN, ROLE_MAX):
            return text

    container = resolve(document, "experience_container")
    if container is None:
        return None
    for node in iter_candidates(document, "experience_text", scope=container):
        text = node_text(node)
        if _within(text, ROLE_FALLBACK_MIN, ROLE_FALLBACK_MAX) and any(k in text for k in ROLE_KEYWORDS):
            return text
    return None


# =============================================================================
# Both
# =============================================================================

def resolve_profiles(document: HostDocument) -> Tuple[UserProfile, UserProfile]:
    """
    Resolve (self, counterpart) for one extraction pass.

    A self name identical to the counterpart's is discarded; the
    counterpart is anchored on the compose surface and is the more
    trustworthy of the two. Self falls back to inference from the
    thread's senders.
    """
    counterpart = resolve_counterpart_profile(document)
    me = resolve_self_profile(document)

    if me.name and match_strength(me.name, counterpart.name) == 3:
        logger.debug("Discarding self name equal to counterpart name")
        me = me.model_copy(update={"name": None})

    if not me.name:
        inferred = infer_self_name(collect_sender_names(document), counterpart.name)
        if inferred:
            logger.debug("Self name inferred from thread senders")
            me = me.model_copy(update={"name": inferred})

    return me, counterpart
