"""
Language Detection
==================

Frequency heuristic, not a classifier: count whole-word hits of each
language's high-frequency function words and report the best language
only when it reaches the threshold. Anything else is English.

Two word-list configurations exist and are kept apart: one tuned for
conversation and profile text, one for feed posts (adds greetings and
thanks). They are near-duplicates on purpose; do not merge them.
"""

from __future__ import annotations

import re
from typing import Dict, Mapping, Tuple

BASE_LANGUAGE = "English"
MIN_HITS = 3

# Conversation / profile text
CONVERSATION_FUNCTION_WORDS: Mapping[str, Tuple[str, ...]] = {
    "German": tuple(
        "und der die das ist für mit bei von auf nicht ein eine auch als nach werden "
        "oder haben sich wird sind wurde können mehr über zum zur".split()
    ),
    "French": tuple(
        "et le la les de du des est pour avec dans sur pas un une que qui nous vous "
        "sont cette peut plus être fait aussi".split()
    ),
    "Spanish": tuple(
        "el la los las de del en que es para con por un una son está más como pero "
        "sus sobre tiene puede hace este esta".split()
    ),
    "Dutch": tuple(
        "de het een van en in is op te voor met zijn dat wordt ook aan door naar "
        "maar bij uit om kan niet worden".split()
    ),
    "Italian": tuple(
        "il la di che è per un una sono con non da del della più come anche questo "
        "questa essere fatto può suoi sua".split()
    ),
    "Portuguese": tuple(
        "o a os as de da do que é para um uma com por são está mais como mas seu sua "
        "pode também sobre este esta".split()
    ),
}

# Feed posts and comments
POST_FUNCTION_WORDS: Mapping[str, Tuple[str, ...]] = {
    "German": tuple(
        "und der die das ist für mit bei von auf nicht ein eine auch als nach werden "
        "oder haben sich wird sind wurde können mehr über zum zur hallo grüße vielen "
        "dank bitte gerne freuen".split()
    ),
    "French": tuple(
        "et le la les de du des est pour avec dans sur pas un une que qui nous vous "
        "sont cette peut plus être fait aussi bonjour merci cordialement".split()
    ),
    "Spanish": tuple(
        "el la los las de del en que es para con por un una son está más como pero "
        "sus sobre tiene puede hola gracias buenas".split()
    ),
    "Dutch": tuple(
        "de het een van en in is op te voor met zijn dat wordt ook aan door naar "
        "maar bij uit om kan niet worden bedankt groeten".split()
    ),
    "Italian": tuple(
        "il la di che è per un una sono con non da del della più come anche questo "
        "questa essere ciao grazie buongiorno".split()
    ),
    "Portuguese": tuple(
        "o a os as de da do que é para um uma com por são está mais como mas seu sua "
        "pode olá obrigado obrigada".split()
    ),
}

_PATTERN_CACHE: Dict[Tuple[str, ...], re.Pattern] = {}

_ASCII_WORD = "[A-Za-z0-9_]"


def _is_ascii_word(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "_")


def _bounded(word: str) -> str:
    """
    A word with ASCII-only word boundaries on both sides.

    Accented letters count as non-word characters, so a word that starts
    or ends with one (über, è, más) only matches where the neighbouring
    character is an ASCII word character, never next to a space.
    """
    before = f"(?<!{_ASCII_WORD})" if _is_ascii_word(word[0]) else f"(?<={_ASCII_WORD})"
    after = f"(?!{_ASCII_WORD})" if _is_ascii_word(word[-1]) else f"(?={_ASCII_WORD})"
    return f"{before}{re.escape(word)}{after}"


def _pattern(words: Tuple[str, ...]) -> re.Pattern:
    pattern = _PATTERN_CACHE.get(words)
    if pattern is None:
        alternation = "|".join(_bounded(w) for w in words)
        # Unicode case folding still applies, so FÜR matches für
        pattern = re.compile(f"(?:{alternation})", re.IGNORECASE)
        _PATTERN_CACHE[words] = pattern
    return pattern


def count_hits(text: str, words: Tuple[str, ...]) -> int:
    """Whole-word, case-insensitive occurrences of any word (repeats count)."""
    return len(_pattern(words).findall(text))


def detect_language(
    text: str,
    word_lists: Mapping[str, Tuple[str, ...]] = CONVERSATION_FUNCTION_WORDS,
) -> str:
    """
    Detect the language of a text sample.

    Args:
        text: Sample text
        word_lists: Language -> function words; dict order breaks ties

    Returns:
        Language name with the most hits if it has at least MIN_HITS,
        else BASE_LANGUAGE
    """
    if not text:
        return BASE_LANGUAGE

    best_language = BASE_LANGUAGE
    best_hits = 0
    for language, words in word_lists.items():
        hits = count_hits(text, words)
        if hits > best_hits:
            best_language, best_hits = language, hits

    return best_language if best_hits >= MIN_HITS else BASE_LANGUAGE


def is_base_language(language: str) -> bool:
    return language == BASE_LANGUAGE
