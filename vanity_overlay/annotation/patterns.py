"""Turn citation-context snippets into patterns over rendered paragraph HTML.

Snippets come from the reference dataset, where an in-text citation reads
like ``[14]``. The rendered document has an inline citation element at that
position instead, so markers become a wildcard spanning one such element.
"""

from __future__ import annotations

import html
import logging
import re

from vanity_overlay.annotation.normalize import normalize

logger = logging.getLogger(__name__)

# "[14]", "[3, 4]", "[2-5]", "[1; 7]"
_MARKER_RE = re.compile(r"\[\s*\d+(?:\s*[,;–-]\s*\d+)*\s*\]")
_WHITESPACE_SPLIT_RE = re.compile(r"(\s+)")


def citation_wildcard(citation_tag: str = "cite") -> str:
    tag = re.escape(citation_tag.lower())
    return rf"<{tag}\b[^>]*>.*?</{tag}>"


def _literal_pattern(literal: str) -> str:
    # Paragraph text is matched as serialized markup, where &, < and > are
    # entity-escaped.
    escaped = html.escape(literal, quote=False)
    out: list[str] = []
    for token in _WHITESPACE_SPLIT_RE.split(escaped):
        if not token:
            continue
        out.append(r"\s+" if token.isspace() else re.escape(token))
    return "".join(out)


def build_pattern_source(context_text: str, *, citation_tag: str = "cite") -> str | None:
    """Regex source for ``context_text``, or None when nothing literal is left to anchor on."""
    normalized = normalize(context_text)
    if not normalized:
        return None

    wildcard = citation_wildcard(citation_tag)
    parts: list[str] = []
    has_literal = False
    pos = 0
    for m in _MARKER_RE.finditer(normalized):
        literal = normalized[pos : m.start()]
        has_literal = has_literal or bool(literal.strip())
        parts.append(_literal_pattern(literal))
        parts.append(wildcard)
        pos = m.end()
    tail = normalized[pos:]
    has_literal = has_literal or bool(tail.strip())
    parts.append(_literal_pattern(tail))

    # A bare "[3]" would match every citation element in the document.
    if not has_literal:
        return None
    return "".join(parts)


def build_pattern(context_text: str, *, citation_tag: str = "cite") -> re.Pattern[str] | None:
    source = build_pattern_source(context_text, citation_tag=citation_tag)
    if source is None:
        return None
    try:
        return re.compile(source, re.IGNORECASE | re.DOTALL)
    except re.error as exc:
        logger.debug("Unusable citation context %r: %s", context_text[:80], exc)
        return None
