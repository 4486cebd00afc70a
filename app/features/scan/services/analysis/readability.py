import re
from typing import Any, Dict, List, Optional

from app.features.scan.services.analysis.base import clamp_score, degrades_to, round_half_up
from app.features.scan.services.parsing.document import Document, collapse_whitespace

CONTENT_SELECTORS = [
    'main', 'article', '[role="main"]', '.content', '#content', '.post-content', '.entry-content',
]

MIN_SAMPLE_CHARS = 100

_SENTENCE_BREAK = re.compile(r"[.!?]+")
_WORD = re.compile(r"[A-Za-z]+(?:['-][A-Za-z]+)*")
_NON_LETTER = re.compile(r"[^a-z]")
_VOWEL_GROUP = re.compile(r"[aeiouy]+")


def extract_main_text(document: Document) -> str:
    """Text of the first content container on the page, falling back to <body>."""
    text = ""
    for selector in CONTENT_SELECTORS:
        container = document.select_first(selector)
        if container is not None:
            text = container.text()
            break

    # An empty container falls back to the whole body, not the next selector
    if not text:
        text = document.text("body")

    return collapse_whitespace(text)


def count_word_syllables(word: str) -> int:
    word = _NON_LETTER.sub("", word.lower())

    if len(word) <= 3:
        return 1

    # Silent trailing e
    if word.endswith("e"):
        word = word[:-1]

    return max(1, len(_VOWEL_GROUP.findall(word)))


def split_sentences(text: str) -> List[str]:
    return [fragment for fragment in _SENTENCE_BREAK.split(text) if fragment.strip()]


def split_words(text: str) -> List[str]:
    return _WORD.findall(text)


def flesch_reading_ease(text: str) -> Optional[int]:
    """
    Flesch Reading Ease clamped to 0-100, or None when the text has no
    sentences or no words to measure.
    """
    sentences = split_sentences(text)
    words = split_words(text)

    if not sentences or not words:
        return None

    syllables = sum(count_word_syllables(word) for word in words)
    avg_words_per_sentence = len(words) / len(sentences)
    avg_syllables_per_word = syllables / len(words)

    score = 206.835 - (1.015 * avg_words_per_sentence) - (84.6 * avg_syllables_per_word)
    return clamp_score(round_half_up(score))


@degrades_to({"readability_score": None})
def analyze_readability(document: Document) -> Dict[str, Any]:
    text = extract_main_text(document)

    if len(text) < MIN_SAMPLE_CHARS:
        return {"readability_score": None}

    return {"readability_score": flesch_reading_ease(text)}
