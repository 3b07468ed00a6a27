from __future__ import annotations

from bs4 import BeautifulSoup

from vanity_overlay.api.schemas import PageTypeNotification
from vanity_overlay.vanity_link import LINK_ID, LINK_LABEL, VanityLinkToggle

DETAIL_PAGE = """<html><body>
<div class="paper-detail-header">
<a class="paper-link" href="https://www.semanticscholar.org/pdf/abc.pdf">PDF</a>
<a class="paper-link" href="https://arxiv.org/pdf/1705.10311.pdf">arXiv</a>
<a class="paper-link" href="https://arxiv.org/pdf/1804.00001.pdf">arXiv v2</a>
</div>
</body></html>"""

OLD_STYLE_PAGE = """<html><body>
<a class="paper-link" href="https://arxiv.org/pdf/cs/0608027.pdf">arXiv</a>
</body></html>"""


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def test_show_adds_one_link_for_first_arxiv_paper() -> None:
    soup = _soup(DETAIL_PAGE)
    toggle = VanityLinkToggle()
    link = toggle.show(soup)

    assert link is not None
    assert toggle.shown
    links = soup.select(f"#{LINK_ID}")
    assert len(links) == 1
    assert links[0]["href"] == "https://www.arxiv-vanity.org/papers/1705.10311/"
    assert links[0]["target"] == "_blank"
    assert links[0].get_text() == LINK_LABEL
    assert links[0].parent is soup.body


def test_show_is_idempotent() -> None:
    soup = _soup(DETAIL_PAGE)
    toggle = VanityLinkToggle()
    toggle.show(soup)
    toggle.show(soup)
    toggle.show(soup)
    assert len(soup.select(f"#{LINK_ID}")) == 1


def test_hide_removes_link_and_tolerates_repeats() -> None:
    soup = _soup(DETAIL_PAGE)
    toggle = VanityLinkToggle()
    toggle.show(soup)
    toggle.hide()
    toggle.hide()
    assert not toggle.shown
    assert soup.select(f"#{LINK_ID}") == []


def test_old_style_ids_get_no_link() -> None:
    soup = _soup(OLD_STYLE_PAGE)
    toggle = VanityLinkToggle()
    assert toggle.show(soup) is None
    assert soup.select(f"#{LINK_ID}") == []


def test_handle_follows_page_type() -> None:
    soup = _soup(DETAIL_PAGE)
    toggle = VanityLinkToggle()

    toggle.handle(PageTypeNotification(is_s2_pdp=True), soup)
    assert len(soup.select(f"#{LINK_ID}")) == 1

    toggle.handle(PageTypeNotification.model_validate({"isS2PDP": False}), soup)
    assert soup.select(f"#{LINK_ID}") == []
    assert not toggle.shown


def test_vanity_base_url_comes_from_settings(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    from vanity_overlay.settings import clear_settings_cache

    monkeypatch.setenv("VO_VANITY_BASE_URL", "https://vanity.example/")
    clear_settings_cache()
    soup = _soup(DETAIL_PAGE)
    link = VanityLinkToggle().show(soup)
    assert link is not None
    assert link["href"] == "https://vanity.example/papers/1705.10311/"
