from __future__ import annotations

import logging
import re
from typing import List, Set

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Tokens that are labels, not ingredients
STOPWORDS = {"ingredients", "contains", "traces of", "may contain"}

_TAG_RE = re.compile(r"<[^>]*>?")
_LABEL_RE = re.compile(r"^\s*ingredients?\s*:\s*", re.IGNORECASE)
_BRACKETS_RE = re.compile(r"\[[^\[\]]*\]|\([^()]*\)")
# Split on , or ; unless a digit follows ("1,5%"), and on a final period.
_SPLIT_RE = re.compile(r"[,;](?!\s*\d)|\.$")
_PERCENT_RE = re.compile(r"^\d+(\.\d+)?\s*%$")
_WORD_BOUNDARY_RE = re.compile(r"(\s+|-)")
# Unclosed opener and whatever follows it within a token
_OPEN_TAIL_RE = re.compile(r"[\(\[].*$")


def strip_markup(text: str) -> str:
    """
    Plain text of an HTML fragment. Open Food Facts wraps allergens in
    <span class="allergen"> tags.
    """
    if not text:
        return ""
    if "<" not in text:
        return text
    try:
        return BeautifulSoup(text, "html.parser").get_text()
    except Exception:
        logger.debug("html.parser rejected ingredient markup, using regex strip", exc_info=True)
        return _TAG_RE.sub("", text)


def remove_annotations(text: str) -> str:
    """Drop [..] and (..) groups, innermost first so nested groups go too."""
    prev = None
    while prev != text:
        prev = text
        text = _BRACKETS_RE.sub(" ", text)
    return text


def title_case(token: str) -> str:
    """'sodium laureth-sulfate' -> 'Sodium Laureth-Sulfate'."""
    parts = _WORD_BOUNDARY_RE.split(token.lower())
    return "".join(p if p == "-" or p.isspace() else p[:1].upper() + p[1:] for p in parts)


def tokenize_ingredients(text: str) -> List[str]:
    """
    Split a free-text ingredient blob into ordered, de-duplicated ingredient
    names. Output order is first occurrence, never sorted.

    >>> tokenize_ingredients("Aqua, Parfum (Fragrance), Sodium Laureth Sulfate.")
    ['Aqua', 'Parfum', 'Sodium Laureth Sulfate']
    """
    if not text or not text.strip():
        return []

    cleaned = strip_markup(text).replace("_", " ")
    cleaned = _LABEL_RE.sub("", cleaned)
    cleaned = remove_annotations(cleaned).strip()

    out: List[str] = []
    seen: Set[str] = set()
    for raw in _SPLIT_RE.split(cleaned):
        token = _OPEN_TAIL_RE.sub("", raw).replace(")", " ").replace("]", " ")
        token = re.sub(r"\s+", " ", token).strip().rstrip(".").strip()
        if len(token) <= 1 or _PERCENT_RE.match(token):
            continue

        token = title_case(token)
        key = token.lower()
        if key in seen or key in STOPWORDS:
            continue
        seen.add(key)
        out.append(token)

    return out
