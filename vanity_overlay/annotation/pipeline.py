"""One annotation pass over a rendered document.

Order matters and is fixed: for each reference, bibliography entries and
then citation mentions; the accepted mentions are written into paragraphs
once; then author links; then the link back to the paper detail page.
A pass is not idempotent. Running it twice on the same document nests
links, so callers must run it once per document load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from vanity_overlay.annotation.linkers import (
    ContextAnnotator,
    inject_detail_link,
    link_authors,
    link_bib_entries,
)
from vanity_overlay.api.schemas import MetadataMessage
from vanity_overlay.document import VanityDocument
from vanity_overlay.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotationResult:
    bib_entries_linked: int
    context_spans_linked: int
    authors_linked: int
    detail_link_injected: bool


def annotate_document(
    document: VanityDocument,
    message: MetadataMessage,
    *,
    settings: Settings | None = None,
) -> AnnotationResult:
    settings = settings or get_settings()
    base_url = settings.s2_base_url

    bib_entries = document.bib_entries()
    annotator = ContextAnnotator(
        document.paragraphs(),
        citation_tag=settings.citation_tag,
        link_target=settings.link_target,
        base_url=base_url,
    )

    bib_linked = 0
    spans_linked = 0
    for reference in message.references:
        try:
            bib_linked += link_bib_entries(
                bib_entries, reference, link_target=settings.link_target, base_url=base_url
            )
        except Exception:
            logger.exception("Linking bibliography entries failed for reference %s", reference.id)
        try:
            spans_linked += annotator.annotate_contexts(reference)
        except Exception:
            logger.exception("Matching citation contexts failed for reference %s", reference.id)

    try:
        annotator.materialize()
    except Exception:
        logger.exception("Writing citation links failed for %s", message.arxiv_id)
        spans_linked = 0

    authors_linked = 0
    try:
        authors_linked = link_authors(
            document.author_list(), message.authors, link_target=settings.link_target
        )
    except Exception:
        logger.exception("Linking authors failed for %s", message.arxiv_id)

    injected = False
    try:
        injected = inject_detail_link(
            document.metadata_block(),
            message.s2_id,
            label=settings.service_name,
            base_url=base_url,
        )
    except Exception:
        logger.exception("Adding detail page link failed for %s", message.arxiv_id)

    result = AnnotationResult(
        bib_entries_linked=bib_linked,
        context_spans_linked=spans_linked,
        authors_linked=authors_linked,
        detail_link_injected=injected,
    )
    logger.info(
        "Annotated %s",
        message.arxiv_id,
        extra={
            "arxiv_id": message.arxiv_id,
            "references": len(message.references),
            "bib_entries_linked": result.bib_entries_linked,
            "context_spans_linked": result.context_spans_linked,
            "authors_linked": result.authors_linked,
            "detail_link_injected": result.detail_link_injected,
        },
    )
    return result
