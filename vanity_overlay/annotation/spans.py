"""Locate and materialize link spans inside serialized block HTML.

Blocks are handled as their inner HTML string. Matching never mutates the
text: accepted spans are collected per block in a ``SpanLedger`` and the
block is rewritten once, by ``apply_spans``, after all matching is done.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from vanity_overlay.annotation.normalize import NormalizedText, normalize

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<(/?)([a-zA-Z][\w:-]*)\b[^>]*?(/?)>")
_VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)


@dataclass(frozen=True)
class AnnotatedSpan:
    block_index: int
    start: int
    end: int
    target_url: str

    def overlaps(self, other: AnnotatedSpan) -> bool:
        return not (self.end <= other.start or other.end <= self.start)


def _inside_tag(text: str, pos: int) -> bool:
    return text.rfind("<", 0, pos) > text.rfind(">", 0, pos)


def _tags_balanced(fragment: str) -> bool:
    stack: list[str] = []
    for m in _TAG_RE.finditer(fragment):
        closing, name, self_closing = m.group(1), m.group(2).lower(), m.group(3)
        if name in _VOID_ELEMENTS or self_closing:
            continue
        if closing:
            if not stack or stack[-1] != name:
                return False
            stack.pop()
        else:
            stack.append(name)
    return not stack


def is_tag_safe(text: str, start: int, end: int) -> bool:
    """True when wrapping ``text[start:end]`` in an element keeps the markup well nested."""
    if _inside_tag(text, start) or _inside_tag(text, end):
        return False
    return _tags_balanced(text[start:end])


def find_spans(
    block_text: str,
    pattern: re.Pattern[str],
    *,
    normalized: NormalizedText | None = None,
) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` offsets into ``block_text`` for each match of ``pattern``.

    Matching runs on the normalized text and the cursor only moves forward,
    so yielded spans never overlap and come out left to right.
    """
    if normalized is None:
        normalized = NormalizedText.build(block_text)
    haystack = normalized.text
    cursor = 0
    while cursor <= len(haystack):
        m = pattern.search(haystack, cursor)
        if m is None:
            return
        if m.end() == m.start():
            cursor = m.end() + 1
            continue
        # A rejected match may hide a valid one that starts inside it.
        cursor = m.start() + 1

        start, end = normalized.span_to_original(m.start(), m.end())
        if normalize(block_text[start:end]) != normalize(m.group(0)):
            logger.debug("Dropping match whose offsets did not map back: %r", m.group(0)[:80])
            continue
        if not is_tag_safe(block_text, start, end):
            logger.debug("Dropping match that would break nesting: %r", m.group(0)[:80])
            continue
        cursor = m.end()
        yield start, end


def find_literal_spans(block_text: str, needle: str) -> Iterator[tuple[int, int]]:
    """Every exact occurrence of ``needle`` that lies in text, not inside a tag."""
    if not needle:
        return
    pos = block_text.find(needle)
    while pos != -1:
        end = pos + len(needle)
        if is_tag_safe(block_text, pos, end):
            yield pos, end
            pos = block_text.find(needle, end)
        else:
            pos = block_text.find(needle, pos + 1)


@dataclass
class SpanLedger:
    """Accepted, non-overlapping spans for one block, against its base text."""

    block_index: int
    base_text: str
    _spans: list[AnnotatedSpan] = field(default_factory=list, init=False, repr=False)

    def accept(self, span: AnnotatedSpan) -> bool:
        if any(span.overlaps(existing) for existing in self._spans):
            return False
        self._spans.append(span)
        return True

    @property
    def spans(self) -> list[AnnotatedSpan]:
        return sorted(self._spans, key=lambda s: s.start)

    def __len__(self) -> int:
        return len(self._spans)


def apply_spans(
    base_text: str,
    spans: list[AnnotatedSpan],
    render: Callable[[AnnotatedSpan, str], str],
) -> str:
    """Rebuild ``base_text`` with each span replaced by ``render(span, original)``."""
    out: list[str] = []
    pos = 0
    for span in sorted(spans, key=lambda s: s.start):
        if span.start < pos:
            raise ValueError(f"overlapping span at {span.start}")
        out.append(base_text[pos : span.start])
        out.append(render(span, base_text[span.start : span.end]))
        pos = span.end
    out.append(base_text[pos:])
    return "".join(out)
