"""Per-document overlay session.

Asks for reference metadata for the page's arXiv id, accepts only the
message keyed to that id, and runs the annotation pass once the document
has rendered. A session runs at most one pass: a second delivery for the
same document is ignored, since the pass would nest links on top of the
first one.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from vanity_overlay.annotation.pipeline import AnnotationResult, annotate_document
from vanity_overlay.api.schemas import MetadataMessage, MetadataRequest
from vanity_overlay.document import VanityDocument
from vanity_overlay.readiness import ReadinessGate
from vanity_overlay.settings import Settings, get_settings
from vanity_overlay.urls import arxiv_id_from_url

logger = logging.getLogger(__name__)


class SessionError(ValueError):
    pass


class OverlaySession:
    def __init__(
        self,
        page_url: str,
        load_document: Callable[[], VanityDocument],
        *,
        settings: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        arxiv_id = arxiv_id_from_url(page_url)
        if not arxiv_id:
            raise SessionError(f"No arXiv id in page URL: {page_url}")
        self.page_url = page_url
        self.arxiv_id = arxiv_id
        self.settings = settings or get_settings()
        self._load_document = load_document
        self._sleep = sleep
        self.document: VanityDocument | None = None
        self.gate: ReadinessGate[AnnotationResult] | None = None

    def request(self) -> MetadataRequest:
        return MetadataRequest(arxiv_id=self.arxiv_id)

    def _probe(self) -> bool:
        self.document = self._load_document()
        return self.document.is_rendered()

    def _run_pass(self, message: MetadataMessage) -> AnnotationResult:
        if self.document is None:
            raise SessionError(f"No document loaded for {self.arxiv_id}")
        return annotate_document(self.document, message, settings=self.settings)

    def receive(self, message: MetadataMessage) -> ReadinessGate[AnnotationResult] | None:
        """Handle a metadata delivery; returns the gate that ran (or gave up on) the pass."""
        if message.arxiv_id != self.arxiv_id:
            logger.debug("Ignoring metadata for %s on %s", message.arxiv_id, self.arxiv_id)
            return None
        if self.gate is not None:
            logger.warning("Ignoring repeated metadata delivery for %s", self.arxiv_id)
            return None

        self.gate = ReadinessGate(
            self._probe,
            lambda: self._run_pass(message),
            interval_s=self.settings.readiness_interval_s,
            timeout_s=self.settings.readiness_timeout_s,
            max_attempts=self.settings.readiness_max_attempts,
            sleep=self._sleep,
        )
        self.gate.wait()
        return self.gate
