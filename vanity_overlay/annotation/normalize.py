"""Text canonicalization for comparisons.

Normalized text is only ever compared against other normalized text; links
are always emitted from the original, unnormalized text.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NormalizedText:
    """Normalized text plus, for each normalized character, its source index."""

    text: str
    source: str
    positions: tuple[int, ...]
    end: int

    @classmethod
    def build(cls, source: str) -> NormalizedText:
        stripped = source.strip()
        if not stripped:
            return cls(text="", source=source, positions=(), end=0)
        begin = len(source) - len(source.lstrip())
        end = begin + len(stripped)

        chars: list[str] = []
        positions: list[int] = []
        i = begin
        while i < end:
            ch = source[i]
            if ch == "\r" and i + 1 < end and source[i + 1] == "\n":
                # \r\n is one line break
                chars.append(" ")
                positions.append(i)
                i += 2
                continue
            if ch in "\r\n":
                chars.append(" ")
                positions.append(i)
            else:
                # Per-character lowering keeps the position map one-to-many;
                # whole-string lower() is context sensitive (final sigma).
                for lowered in ch.lower():
                    chars.append(lowered)
                    positions.append(i)
            i += 1
        return cls(text="".join(chars), source=source, positions=tuple(positions), end=end)

    def to_original(self, index: int) -> int:
        """Map a normalized offset (0..len(text)) to an offset in ``source``."""
        if index >= len(self.positions):
            return self.end
        return self.positions[index]

    def span_to_original(self, start: int, end: int) -> tuple[int, int]:
        if end <= start:
            pos = self.to_original(start)
            return pos, pos
        # The end maps past the last character covered, so a character that
        # lowered to several characters is never split.
        return self.to_original(start), self.positions[end - 1] + _source_width(self, end - 1)


def _source_width(nt: NormalizedText, index: int) -> int:
    pos = nt.positions[index]
    if nt.source[pos] == "\r" and pos + 1 < len(nt.source) and nt.source[pos + 1] == "\n":
        return 2
    return 1


def normalize(text: str) -> str:
    """Lowercase, trim, and turn every line break into a single space."""
    return NormalizedText.build(text).text
