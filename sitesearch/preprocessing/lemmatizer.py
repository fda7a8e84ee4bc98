"""Text normalization: HTML to plain text, words to lemmas."""

from __future__ import annotations

import html
import re
import unicodedata
from collections import Counter
from typing import Optional

from bs4 import BeautifulSoup
from nltk.stem import PorterStemmer

from sitesearch.config.settings import PreprocessingSettings, get_settings


# Function words carry no search value and are never indexed
_STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
    "in", "is", "it", "of", "on", "or", "that", "the", "this", "to",
    "was", "were", "with",
})

_URL_RE = re.compile(r"(?:https?://\S+|www\.\S+)", re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r"[^\w]+|_")
_WHITESPACE_RE = re.compile(r"\s+")


class Lemmatizer:
    """
    Reduces text to lemmas.

    Pipeline for `lemma_frequencies` / `lemma_set`:
      1) HTML entity decode
      2) Unicode normalization (NFKC)
      3) Lowercasing
      4) URL removal
      5) Punctuation/whitespace normalization
      6) Tokenization
      7) Token length filtering
      8) Stopword removal
      9) Stemming (the stem is the lemma)

    Callers pass plain text; use `plain_text()` first for HTML.
    """

    def __init__(self, settings: PreprocessingSettings | None = None) -> None:
        self._settings = settings or get_settings().preprocessing
        self._stemmer = PorterStemmer()

    # ----- Markup -----

    @staticmethod
    def plain_text(markup: Optional[str]) -> str:
        """Strip tags, scripts and styles; collapse whitespace."""
        if not markup:
            return ""
        soup = BeautifulSoup(markup, "lxml")
        for node in soup(["script", "style", "noscript"]):
            node.decompose()
        return _WHITESPACE_RE.sub(" ", soup.get_text(" ")).strip()

    @staticmethod
    def title_of(markup: Optional[str]) -> str:
        """Text of the first <title> element, or "" if there is none."""
        if not markup:
            return ""
        title = BeautifulSoup(markup, "lxml").find("title")
        return title.get_text(strip=True) if title else ""

    # ----- Lemmas -----

    def lemmas(self, text: Optional[str]) -> list[str]:
        """Lemmas of *text* in order of occurrence, repeats kept."""
        if not text:
            return []

        value = html.unescape(text)
        value = unicodedata.normalize("NFKC", value)
        value = value.lower()
        value = _URL_RE.sub(" ", value)
        value = _NON_ALNUM_RE.sub(" ", value)

        tokens = [
            t
            for t in value.split()
            if self._settings.min_token_length <= len(t) <= self._settings.max_token_length
        ]
        return [self._stemmer.stem(t) for t in tokens if t not in _STOPWORDS and not t.isdigit()]

    def lemma_frequencies(self, text: Optional[str]) -> dict[str, int]:
        """Map each lemma of *text* to its number of occurrences."""
        return dict(Counter(self.lemmas(text)))

    def lemma_set(self, text: Optional[str]) -> set[str]:
        return set(self.lemmas(text))
