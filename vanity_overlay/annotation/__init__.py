"""Citation overlay: match reference metadata against rendered paper HTML."""

from vanity_overlay.annotation.linkers import (
    ContextAnnotator,
    annotate_contexts,
    inject_detail_link,
    link_authors,
    link_bib_entries,
)
from vanity_overlay.annotation.normalize import NormalizedText, normalize
from vanity_overlay.annotation.patterns import build_pattern
from vanity_overlay.annotation.pipeline import AnnotationResult, annotate_document
from vanity_overlay.annotation.spans import (
    AnnotatedSpan,
    SpanLedger,
    apply_spans,
    find_spans,
)

__all__ = [
    "AnnotatedSpan",
    "AnnotationResult",
    "ContextAnnotator",
    "NormalizedText",
    "SpanLedger",
    "annotate_contexts",
    "annotate_document",
    "apply_spans",
    "build_pattern",
    "find_spans",
    "inject_detail_link",
    "link_authors",
    "link_bib_entries",
    "normalize",
]
