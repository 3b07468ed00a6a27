"""Link bibliography entries, citation mentions and authors to their pages.

Each linker mutates the blocks it is handed in place and returns how much it
linked. Missing blocks and references without a match are expected with
noisy metadata and are skipped silently.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Sequence

from bs4 import BeautifulSoup, Tag

from vanity_overlay.annotation.normalize import NormalizedText, normalize
from vanity_overlay.annotation.patterns import build_pattern
from vanity_overlay.annotation.spans import (
    AnnotatedSpan,
    SpanLedger,
    apply_spans,
    find_literal_spans,
    find_spans,
)
from vanity_overlay.api.schemas import Author, Reference
from vanity_overlay.document import inner_html, outermost, replace_inner_html
from vanity_overlay.urls import paper_page

logger = logging.getLogger(__name__)


def reference_url(reference: Reference, *, base_url: str | None = None) -> str:
    if not reference.slug:
        return paper_page(reference.id, base_url=base_url)
    return paper_page(reference.slug, reference.id, base_url=base_url)


def render_link(url: str, inner: str, *, target: str | None = "_blank") -> str:
    attrs = f'href="{html.escape(url, quote=True)}"'
    if target:
        attrs += f' target="{html.escape(target, quote=True)}"'
    return f"<a {attrs}>{inner}</a>"


def _new_tag(anchor: Tag, name: str, attrs: dict[str, str]) -> Tag:
    root: Tag | None = anchor
    while root is not None and not isinstance(root, BeautifulSoup):
        root = root.parent
    soup = root if isinstance(root, BeautifulSoup) else BeautifulSoup("", "html.parser")
    return soup.new_tag(name, attrs=attrs)


def link_bib_entries(
    entries: Sequence[Tag],
    reference: Reference,
    *,
    link_target: str = "_blank",
    base_url: str | None = None,
) -> int:
    title = normalize(reference.title.text)
    if not title:
        return 0

    url = reference_url(reference, base_url=base_url)
    linked = 0
    for entry in entries:
        if title not in normalize(entry.get_text()):
            continue
        attrs = {"href": url}
        if link_target:
            attrs["target"] = link_target
        link = _new_tag(entry, "a", attrs)
        for child in list(entry.contents):
            link.append(child.extract())
        entry.append(link)
        linked += 1

    if not linked:
        logger.debug("No bibliography entry matched reference %s", reference.id)
    return linked


class ContextAnnotator:
    """Links in-text citation mentions across a document's paragraphs.

    Every paragraph's inner HTML is captured once, when the annotator is
    built. ``annotate_contexts`` only records accepted spans against that
    snapshot, so references never see links added for earlier references;
    a span overlapping one already accepted in the same paragraph is
    rejected. ``materialize`` then rewrites each paragraph exactly once.
    """

    def __init__(
        self,
        paragraphs: Sequence[Tag],
        *,
        citation_tag: str = "cite",
        link_target: str = "_blank",
        base_url: str | None = None,
    ) -> None:
        # A paragraph nested in another selected one is covered by the outer
        # ledger; rewriting the outer block detaches the inner Tag.
        self._paragraphs = outermost(paragraphs)
        self._ledgers = [SpanLedger(i, inner_html(p)) for i, p in enumerate(self._paragraphs)]
        self._normalized: list[NormalizedText | None] = [None] * len(self._ledgers)
        self._citation_tag = citation_tag
        self._link_target = link_target
        self._base_url = base_url
        self._materialized = False

    def _normalized_text(self, index: int) -> NormalizedText:
        cached = self._normalized[index]
        if cached is None:
            cached = NormalizedText.build(self._ledgers[index].base_text)
            self._normalized[index] = cached
        return cached

    @property
    def accepted_spans(self) -> list[AnnotatedSpan]:
        return [span for ledger in self._ledgers for span in ledger.spans]

    def annotate_contexts(self, reference: Reference) -> int:
        if self._materialized:
            raise RuntimeError("ContextAnnotator already materialized")

        url = reference_url(reference, base_url=self._base_url)
        accepted = 0
        for context in reference.citation_contexts:
            pattern = build_pattern(context.text, citation_tag=self._citation_tag)
            if pattern is None:
                continue
            for index, ledger in enumerate(self._ledgers):
                spans = find_spans(
                    ledger.base_text, pattern, normalized=self._normalized_text(index)
                )
                for start, end in spans:
                    if ledger.accept(AnnotatedSpan(ledger.block_index, start, end, url)):
                        accepted += 1
        return accepted

    def _render(self, span: AnnotatedSpan, original: str) -> str:
        return render_link(span.target_url, original, target=self._link_target)

    def materialize(self) -> int:
        """Write accepted spans into the paragraphs; returns paragraphs rewritten."""
        if self._materialized:
            raise RuntimeError("ContextAnnotator already materialized")
        self._materialized = True

        rewritten = 0
        for paragraph, ledger in zip(self._paragraphs, self._ledgers):
            if not len(ledger):
                continue
            replace_inner_html(paragraph, apply_spans(ledger.base_text, ledger.spans, self._render))
            rewritten += 1
        return rewritten


def annotate_contexts(
    paragraphs: Sequence[Tag],
    reference: Reference,
    *,
    citation_tag: str = "cite",
    link_target: str = "_blank",
    base_url: str | None = None,
) -> int:
    """Link one reference's citation mentions; returns the number of spans linked."""
    annotator = ContextAnnotator(
        paragraphs, citation_tag=citation_tag, link_target=link_target, base_url=base_url
    )
    linked = annotator.annotate_contexts(reference)
    annotator.materialize()
    return linked


def link_authors(
    author_list: Tag | None,
    authors: Sequence[Author],
    *,
    link_target: str = "_blank",
) -> int:
    if author_list is None:
        logger.debug("No author list in document; skipping author links")
        return 0

    # Names are located by plain substring search and the block is rebuilt
    # by slicing, so nothing in a name or URL is ever read as a pattern.
    ledger = SpanLedger(0, inner_html(author_list))
    linked = 0
    for author in authors:
        needle = html.escape(author.name, quote=False)
        for start, end in find_literal_spans(ledger.base_text, needle):
            if ledger.accept(AnnotatedSpan(0, start, end, author.url)):
                linked += 1

    if linked:
        rendered = apply_spans(
            ledger.base_text,
            ledger.spans,
            lambda span, original: render_link(span.target_url, original, target=link_target),
        )
        replace_inner_html(author_list, rendered)
    return linked


def inject_detail_link(
    metadata_block: Tag | None,
    paper_id: str,
    *,
    label: str = "Semantic Scholar",
    base_url: str | None = None,
) -> bool:
    if metadata_block is None:
        logger.debug("No metadata block in document; skipping detail page link")
        return False

    link = _new_tag(metadata_block, "a", {"href": paper_page(paper_id, base_url=base_url)})
    link.string = label
    container = _new_tag(metadata_block, "div", {})
    container.append(link)
    metadata_block.append(container)
    return True
