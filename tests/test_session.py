from __future__ import annotations

import pytest

from vanity_overlay.api.schemas import MetadataMessage
from vanity_overlay.document import VanityDocument
from vanity_overlay.readiness import GateState
from vanity_overlay.session import OverlaySession, SessionError
from vanity_overlay.settings import Settings

PAGE_URL = "https://www.arxiv-vanity.com/papers/1211.1036/"
UNRENDERED_HTML = '<html><body><div class="loading">Rendering...</div></body></html>'


class _Loader:
    """Serves the unrendered page ``pending`` times, then the rendered one."""

    def __init__(self, rendered_html: str, pending: int | None = 0) -> None:
        self.rendered_html = rendered_html
        self.pending = pending
        self.calls = 0

    def __call__(self) -> VanityDocument:
        self.calls += 1
        if self.pending is None or self.calls <= self.pending:
            return VanityDocument.from_html(UNRENDERED_HTML)
        return VanityDocument.from_html(self.rendered_html)


def _settings(**overrides) -> Settings:  # type: ignore[no-untyped-def]
    values = {"readiness_interval_s": 0.05, "readiness_timeout_s": None}
    values.update(overrides)
    return Settings(**values)


def test_request_carries_arxiv_id_from_url(rendered_html: str) -> None:
    session = OverlaySession(PAGE_URL, _Loader(rendered_html), settings=_settings())
    assert session.arxiv_id == "1211.1036"
    assert session.request().model_dump(by_alias=True) == {"arxivId": "1211.1036"}


def test_url_without_arxiv_id_is_rejected(rendered_html: str) -> None:
    with pytest.raises(SessionError):
        OverlaySession("https://www.arxiv-vanity.com/", _Loader(rendered_html))


def test_message_for_another_document_is_ignored(
    rendered_html: str, metadata_message: MetadataMessage
) -> None:
    loader = _Loader(rendered_html)
    session = OverlaySession(
        "https://www.arxiv-vanity.com/papers/9999.0001/", loader, settings=_settings()
    )
    assert session.receive(metadata_message) is None
    assert loader.calls == 0
    assert session.gate is None


def test_pass_runs_once_document_renders(
    rendered_html: str, metadata_message: MetadataMessage
) -> None:
    sleeps: list[float] = []
    loader = _Loader(rendered_html, pending=2)
    session = OverlaySession(PAGE_URL, loader, settings=_settings(), sleep=sleeps.append)

    gate = session.receive(metadata_message)
    assert gate is not None
    assert gate.state is GateState.INVOKED
    assert gate.result is not None
    assert gate.result.context_spans_linked == 2
    assert sleeps == [0.05, 0.05]
    assert loader.calls == 3

    assert session.document is not None
    assert session.document.metadata_block() is not None


def test_repeated_delivery_does_not_run_a_second_pass(
    rendered_html: str, metadata_message: MetadataMessage
) -> None:
    loader = _Loader(rendered_html)
    session = OverlaySession(PAGE_URL, loader, settings=_settings())
    first = session.receive(metadata_message)
    assert first is not None
    assert session.receive(metadata_message) is None
    assert loader.calls == 1

    assert session.document is not None
    metadata = session.document.metadata_block()
    assert metadata is not None
    assert len(metadata.find_all("a")) == 1


def test_gives_up_when_document_never_renders(
    rendered_html: str, metadata_message: MetadataMessage
) -> None:
    loader = _Loader(rendered_html, pending=None)
    session = OverlaySession(
        PAGE_URL,
        loader,
        settings=_settings(readiness_max_attempts=3),
        sleep=lambda _s: None,
    )
    gate = session.receive(metadata_message)
    assert gate is not None
    assert gate.state is GateState.GAVE_UP
    assert gate.result is None
    assert loader.calls == 3


def test_pass_without_loaded_document_raises(
    rendered_html: str, metadata_message: MetadataMessage
) -> None:
    session = OverlaySession(PAGE_URL, _Loader(rendered_html), settings=_settings())
    with pytest.raises(SessionError):
        session._run_pass(metadata_message)
