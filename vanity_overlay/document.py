"""The rendered ArXiv Vanity page, as far as the overlay cares about it."""

from __future__ import annotations

from collections.abc import Sequence

from bs4 import BeautifulSoup, Tag

PARAGRAPH_SELECTOR = ".ltx_p"
BIB_ENTRY_SELECTORS = (".ltx_bibitem", "#cite-hover-boxes-container .dt-hover-box")
AUTHOR_LIST_SELECTOR = ".ltx_personname"
METADATA_SELECTOR = ".engrafo-metadata-custom"
RENDERED_SENTINEL_TAG = "dt-article"


def inner_html(tag: Tag) -> str:
    return tag.decode_contents()


def outermost(tags: Sequence[Tag]) -> list[Tag]:
    """Drop tags nested inside another tag of the same selection, keeping order."""
    selected = {id(tag) for tag in tags}
    return [tag for tag in tags if not any(id(parent) in selected for parent in tag.parents)]


def replace_inner_html(tag: Tag, fragment: str) -> None:
    """Swap ``tag``'s children for the parsed ``fragment``."""
    parsed = BeautifulSoup(fragment, "html.parser")
    tag.clear()
    for child in list(parsed.contents):
        tag.append(child.extract())


class VanityDocument:
    def __init__(self, soup: BeautifulSoup) -> None:
        self.soup = soup

    @classmethod
    def from_html(cls, raw_html: str) -> VanityDocument:
        return cls(BeautifulSoup(raw_html, "html.parser"))

    def is_rendered(self) -> bool:
        return self.soup.find(RENDERED_SENTINEL_TAG) is not None

    def paragraphs(self) -> list[Tag]:
        return list(self.soup.select(PARAGRAPH_SELECTOR))

    def bib_entries(self) -> list[Tag]:
        # The hover boxes repeat each bibliography entry next to its mention.
        entries: list[Tag] = []
        for selector in BIB_ENTRY_SELECTORS:
            entries.extend(self.soup.select(selector))
        return entries

    def author_list(self) -> Tag | None:
        return self.soup.select_one(AUTHOR_LIST_SELECTOR)

    def metadata_block(self) -> Tag | None:
        return self.soup.select_one(METADATA_SELECTOR)

    def to_html(self) -> str:
        return self.soup.decode()
