"""Snippet extraction and query-term highlighting."""

from __future__ import annotations

import html
import re
from typing import Iterable, Optional

from sitesearch.preprocessing.lemmatizer import Lemmatizer


class SnippetBuilder:
    """
    Builds a short highlighted excerpt of a page for one query.

    The excerpt is centred on the first occurrence of the rarest
    query lemma that appears in the text; matching words are wrapped in
    <b>, one tag per run of consecutive matches.
    """

    def __init__(
        self,
        lemmatizer: Lemmatizer,
        radius: int = 150,
        fallback_length: int = 300,
    ) -> None:
        self._lemmatizer = lemmatizer
        self._radius = radius
        self._fallback_length = fallback_length

    def build(
        self,
        text: str,
        ordered_lemmas: Iterable[str],
        query_lemmas: Optional[set[str]] = None,
    ) -> str:
        """
        Args:
            text: Plain text of the page.
            ordered_lemmas: Query lemmas, rarest first.
            query_lemmas: Lemmas to highlight; defaults to ordered_lemmas.
        """
        ordered = list(ordered_lemmas)
        highlight_set = set(query_lemmas) if query_lemmas is not None else set(ordered)
        return self.highlight(self.excerpt(text, ordered), highlight_set)

    def excerpt(self, text: str, ordered_lemmas: Iterable[str]) -> str:
        """
        Window of `radius` characters around the best match.

        A lemma is first searched literally. Stems that are not a substring of
        their word ("happi" for "happy") are then found by lemmatizing the
        words of the text.
        """
        ordered = list(ordered_lemmas)
        for lemma in ordered:
            match = re.search(re.escape(lemma), text, re.IGNORECASE)
            if match:
                return self._window(text, match.start(), match.end())

        first_word = self._first_words_of(text, set(ordered))
        for lemma in ordered:
            if lemma in first_word:
                start, end = first_word[lemma]
                return self._window(text, start, end)
        return text[: self._fallback_length]

    def _window(self, text: str, start: int, end: int) -> str:
        return text[max(0, start - self._radius): min(len(text), end + self._radius)]

    def _first_words_of(self, text: str, wanted: set[str]) -> dict[str, tuple[int, int]]:
        """Span of the first word reducing to each wanted lemma."""
        found: dict[str, tuple[int, int]] = {}
        for match in re.finditer(r"\w+", text):
            for lemma in self._lemmatizer.lemma_set(match.group()) & wanted:
                found.setdefault(lemma, match.span())
            if len(found) == len(wanted):
                break
        return found

    def highlight(self, fragment: str, query_lemmas: set[str]) -> str:
        parts: list[str] = []
        run: list[str] = []

        for word in fragment.split():
            if self._lemmatizer.lemma_set(word) & query_lemmas:
                run.append(html.escape(word, quote=False))
                continue
            if run:
                parts.append("<b>" + " ".join(run) + "</b>")
                run = []
            parts.append(html.escape(word, quote=False))

        if run:
            parts.append("<b>" + " ".join(run) + "</b>")
        return " ".join(parts)
