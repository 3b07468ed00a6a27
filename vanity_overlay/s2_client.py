"""Fetch paper, author and reference metadata from Semantic Scholar.

This is the relay side of the overlay: it turns an arXiv id into the
``MetadataMessage`` the annotation pass consumes. The reference listing
comes from the site's undocumented citations endpoint, so its records are
validated one by one and malformed entries are dropped.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from vanity_overlay.api.schemas import Author, MetadataMessage, Reference
from vanity_overlay.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_USER_AGENT = "VanityOverlay/0.1 (+citation-overlay)"


class S2ClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class S2Paper:
    id: str
    authors: list[Author] = field(default_factory=list)


def _paper_id_from_url(url: str) -> str:
    # https://www.semanticscholar.org/paper/<slug>/<id>
    return url.rstrip("/").split("/")[-1]


class S2Client:
    def __init__(
        self,
        *,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.Client(
            follow_redirects=True,
            headers={"User-Agent": _USER_AGENT},
            timeout=httpx.Timeout(self.settings.http_timeout_s, connect=5.0),
        )
        self._sleep = sleep

    def __enter__(self) -> S2Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _get(self, url: str, *, params: dict[str, Any] | None = None) -> httpx.Response:
        backoff_s = 1.0
        for attempt in range(3):
            try:
                return self._client.get(url, params=params)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt == 2:
                    raise S2ClientError(f"Request to {url} failed: {exc}") from exc
                logger.info("Retrying %s after %s", url, exc)
                self._sleep(backoff_s)
                backoff_s *= 2
        raise RuntimeError("unreachable")

    def _get_json(self, url: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        resp = self._get(url, params=params)
        if resp.status_code != 200:
            raise S2ClientError(
                f"HTTP {resp.status_code} from {url}", status_code=resp.status_code
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise S2ClientError(f"Invalid JSON from {url}") from exc
        if not isinstance(data, dict):
            raise S2ClientError(f"Unexpected payload from {url}")
        return data

    def fetch_paper(self, arxiv_id: str) -> S2Paper:
        base = self.settings.s2_api_base_url.rstrip("/")
        data = self._get_json(f"{base}/v1/paper/arXiv:{quote(arxiv_id, safe='./')}")
        url = data.get("url")
        if not isinstance(url, str) or not url:
            raise S2ClientError(f"No paper URL for arXiv:{arxiv_id}")

        authors: list[Author] = []
        for raw in data.get("authors") or []:
            # Authors without a page cannot be linked.
            if not isinstance(raw, dict) or not raw.get("name") or not raw.get("url"):
                continue
            authors.append(Author(name=raw["name"], url=raw["url"]))
        return S2Paper(id=_paper_id_from_url(url), authors=authors)

    def fetch_references(self, s2_id: str) -> list[Reference]:
        base = self.settings.s2_base_url.rstrip("/")
        data = self._get_json(
            f"{base}/api/1/paper/{quote(s2_id, safe='')}/citations",
            params={
                "citationType": "citedPapers",
                "citationsPageSize": self.settings.references_page_size,
            },
        )
        references: list[Reference] = []
        for raw in data.get("citations") or []:
            try:
                references.append(Reference.model_validate(raw))
            except ValidationError as exc:
                logger.debug("Skipping malformed reference for %s: %s", s2_id, exc)
        return references

    def fetch_metadata(self, arxiv_id: str) -> MetadataMessage:
        paper = self.fetch_paper(arxiv_id)
        references = self.fetch_references(paper.id)
        logger.info(
            "Fetched metadata for %s",
            arxiv_id,
            extra={"arxiv_id": arxiv_id, "s2_id": paper.id, "references": len(references)},
        )
        return MetadataMessage(
            arxiv_id=arxiv_id,
            references=references,
            s2_id=paper.id,
            authors=paper.authors,
        )
