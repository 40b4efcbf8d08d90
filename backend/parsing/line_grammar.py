"""
Line grammar: split one line of model output into "Key: Value" fields.

    - **Date:** 2021-03-15, Price: $1,250,000, Type: Sale, Event: Sold
      -> date="2021-03-15", price="$1,250,000", type="Sale", event="Sold"

Rules, in one place:
- bullet markers and bold markers are stripped before matching;
- keys come from a field vocabulary and match case-insensitively, with spaces,
  underscores and hyphens between words interchangeable;
- at line start the ":" / "-" separator is optional; after a "," ";" or "|"
  delimiter it is required, so list values ("Pool, Solar Panels") never open a field;
- when the line does not open with a key, the first key followed by a separator
  anywhere in the line starts the fields ("Comparable 1: Address: ...");
- a value runs greedily up to the next recognized field, so thousands
  separators and commas inside values survive.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator

from parsing.field_vocabulary import FieldSpec

_RE_BULLET = re.compile(r"^\s*(?:[-*•·+]|\d{1,2}[.)])\s+")
_RE_BOLD = re.compile(r"\*\*|__")
_RE_KEY_SPACING = re.compile(r"[\s_\-]+")
_SEPARATOR = r"(?::|=|[-–—](?=\s))"
_TRAILING_DELIMS = " \t,;|"


@dataclass(frozen=True)
class FieldToken:
    field: str
    key: str
    value: str
    start: int


def clean_line(line: str) -> str:
    """Strip bullet and bold markers and surrounding whitespace."""
    text = _RE_BOLD.sub("", line or "")
    text = _RE_BULLET.sub("", text)
    return text.strip()


def normalize_key(key: str) -> str:
    return _RE_KEY_SPACING.sub(" ", key.strip().lower())


def _key_alternation(fields: tuple[FieldSpec, ...]) -> str:
    synonyms = {syn for spec in fields for syn in spec.synonyms}
    parts = []
    for syn in sorted(synonyms, key=len, reverse=True):
        words = [re.escape(w) for w in _RE_KEY_SPACING.split(syn.strip()) if w]
        parts.append(r"[\s_\-]+".join(words))
    return "|".join(parts)


class LineGrammar:
    """Tokenizer bound to one field vocabulary."""

    def __init__(self, fields: tuple[FieldSpec, ...]) -> None:
        self.fields = fields
        self._by_key: dict[str, FieldSpec] = {}
        for spec in fields:
            for syn in spec.synonyms:
                self._by_key.setdefault(normalize_key(syn), spec)
        keys = _key_alternation(fields)
        self._re_start = re.compile(
            rf"^\s*(?P<key>{keys})(?![A-Za-z0-9])\s*{_SEPARATOR}?\s*", re.I
        )
        self._re_inner = re.compile(
            rf"[,;|]\s*(?P<key>{keys})(?![A-Za-z0-9])\s*{_SEPARATOR}\s*", re.I
        )
        self._re_anywhere = re.compile(
            rf"(?<=[\s,;|:(])(?P<key>{keys})(?![A-Za-z0-9])\s*{_SEPARATOR}\s*", re.I
        )

    def tokenize(self, line: str) -> list[FieldToken]:
        text = clean_line(line)
        if not text:
            return []
        # (key_start, value_start, cut_at, key_text); cut_at is where the previous value ends
        marks: list[tuple[int, int, int, str]] = []
        m = self._re_start.match(text) or self._re_anywhere.search(text)
        search_from = 0
        if m:
            marks.append((m.start("key"), m.end(), m.start(), m.group("key")))
            search_from = m.end()
        for m in self._re_inner.finditer(text, search_from):
            marks.append((m.start("key"), m.end(), m.start(), m.group("key")))

        tokens: list[FieldToken] = []
        for i, (key_start, value_start, _, key_text) in enumerate(marks):
            value_end = marks[i + 1][2] if i + 1 < len(marks) else len(text)
            value = text[value_start:value_end].strip().strip(_TRAILING_DELIMS).strip()
            spec = self._by_key.get(normalize_key(key_text))
            if spec is None:
                continue
            tokens.append(FieldToken(field=spec.name, key=key_text, value=value, start=key_start))
        return tokens

    def fields_of(self, line: str) -> dict[str, str]:
        """Field -> value for one line; the first occurrence of a field wins."""
        out: dict[str, str] = {}
        for token in self.tokenize(line):
            out.setdefault(token.field, token.value)
        return out

    def iter_block(self, text: str) -> Iterator[FieldToken]:
        for line in (text or "").splitlines():
            yield from self.tokenize(line)

    def first_value(self, text: str, field: str) -> str | None:
        for token in self.iter_block(text):
            if token.field == field and token.value:
                return token.value
        return None


@lru_cache(maxsize=32)
def grammar_for(fields: tuple[FieldSpec, ...]) -> LineGrammar:
    return LineGrammar(fields)
