"""Show or hide the "View on Arxiv Vanity" link on paper detail pages.

The detail page is a single-page app, so the page-type notification can
arrive many times for one loaded page. The toggle keeps the link it added
as explicit state; ``show`` and ``hide`` are idempotent.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag

from vanity_overlay.api.schemas import PageTypeNotification
from vanity_overlay.settings import Settings, get_settings
from vanity_overlay.urls import arxiv_id_from_pdf_link

logger = logging.getLogger(__name__)

LINK_ID = "s2-arxiv-vanity-link"
LINK_LABEL = "View on Arxiv Vanity"
_ARXIV_PDF_PREFIX = "https://arxiv.org/pdf/"


class VanityLinkToggle:
    def __init__(self, *, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.link: Tag | None = None

    @property
    def shown(self) -> bool:
        return self.link is not None

    def hide(self) -> None:
        if self.link is not None:
            self.link.decompose()
            self.link = None

    def show(self, soup: BeautifulSoup) -> Tag | None:
        """Add the link for the page's arXiv paper, replacing any link shown before."""
        self.hide()
        body = soup.body or soup
        base = self.settings.vanity_base_url.rstrip("/")
        for paper_link in soup.select(".paper-link"):
            href = paper_link.get("href")
            if not isinstance(href, str) or not href.startswith(_ARXIV_PDF_PREFIX):
                continue
            arxiv_id = arxiv_id_from_pdf_link(href)
            # Old-style numeric ids (cs/0608027) do not render on Arxiv Vanity.
            if not arxiv_id or "." not in arxiv_id:
                logger.debug("Skipping unsupported arXiv id %r", arxiv_id)
                continue
            link = soup.new_tag(
                "a",
                attrs={
                    "id": LINK_ID,
                    "href": f"{base}/papers/{arxiv_id}/",
                    "target": "_blank",
                },
            )
            link.string = LINK_LABEL
            body.append(link)
            self.link = link
            break
        return self.link

    def handle(self, notification: PageTypeNotification, soup: BeautifulSoup) -> Tag | None:
        if notification.is_s2_pdp:
            return self.show(soup)
        self.hide()
        return None
