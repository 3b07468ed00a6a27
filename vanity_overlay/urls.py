from __future__ import annotations

import re
from urllib.parse import quote, urlparse

from vanity_overlay.settings import get_settings

_PDP_PATH_RE = re.compile(r"^/paper/[^/]+/.+")


def paper_page(slug_or_id: str, paper_id: str | None = None, *, base_url: str | None = None) -> str:
    """Canonical paper detail page URL.

    ``paper_page(id)`` gives ``<base>/paper/<id>``; ``paper_page(slug, id)``
    gives ``<base>/paper/<slug>/<id>``.
    """
    base = (base_url or get_settings().s2_base_url).rstrip("/")
    if paper_id is None:
        return f"{base}/paper/{quote(slug_or_id, safe='')}"
    return f"{base}/paper/{quote(slug_or_id, safe='')}/{quote(paper_id, safe='')}"


def arxiv_id_from_url(url: str) -> str | None:
    """The second path segment of a rendered-paper URL.

    ``https://www.arxiv-vanity.com/papers/1211.1036/`` -> ``1211.1036``.
    """
    parts = urlparse(url).path.split("/")
    if len(parts) < 3 or not parts[2]:
        return None
    return parts[2]


def is_paper_detail_page(url: str, *, base_url: str | None = None) -> bool:
    base = urlparse(base_url or get_settings().s2_base_url)
    parsed = urlparse(url)
    if (parsed.scheme, parsed.netloc) != (base.scheme, base.netloc):
        return False
    return bool(_PDP_PATH_RE.match(parsed.path))


def arxiv_id_from_pdf_link(href: str) -> str | None:
    """``https://arxiv.org/pdf/1705.10311.pdf`` -> ``1705.10311``."""
    last = href.rstrip("/").split("/")[-1]
    arxiv_id = last.split(".pdf")[0]
    return arxiv_id or None
