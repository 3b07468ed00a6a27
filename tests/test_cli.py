from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from vanity_overlay import cli
from vanity_overlay.api.schemas import MetadataMessage
from vanity_overlay.s2_client import S2Client


def _write_inputs(tmp_path: Path, html: str, metadata: dict[str, Any]) -> tuple[Path, Path]:
    html_path = tmp_path / "paper.html"
    html_path.write_text(html, encoding="utf-8")
    metadata_path = tmp_path / "metadata.json"
    metadata_path.write_text(json.dumps(metadata), encoding="utf-8")
    return html_path, metadata_path


def test_annotate_writes_linked_html(
    tmp_path: Path,
    rendered_html: str,
    metadata_payload: dict[str, Any],
    capsys: pytest.CaptureFixture[str],
) -> None:
    html_path, metadata_path = _write_inputs(tmp_path, rendered_html, metadata_payload)
    out_path = tmp_path / "out.html"

    code = cli.main(
        ["annotate", str(html_path), "--metadata", str(metadata_path), "-o", str(out_path)]
    )

    assert code == 0
    output = out_path.read_text(encoding="utf-8")
    assert "https://www.semanticscholar.org/paper/Deep-Learning-Smith/abc123" in output
    assert "https://www.semanticscholar.org/paper/f00dcafe" in output
    err = capsys.readouterr().err
    assert "3 bib entries" in err
    assert "2 citation mentions" in err


def test_annotate_to_stdout(
    tmp_path: Path,
    rendered_html: str,
    metadata_payload: dict[str, Any],
    capsys: pytest.CaptureFixture[str],
) -> None:
    html_path, metadata_path = _write_inputs(tmp_path, rendered_html, metadata_payload)
    code = cli.main(["annotate", str(html_path), "--metadata", str(metadata_path)])
    assert code == 0
    assert "<dt-article>" in capsys.readouterr().out


def test_annotate_refuses_metadata_for_another_page(
    tmp_path: Path,
    rendered_html: str,
    metadata_payload: dict[str, Any],
    capsys: pytest.CaptureFixture[str],
) -> None:
    html_path, metadata_path = _write_inputs(tmp_path, rendered_html, metadata_payload)
    code = cli.main(
        [
            "annotate",
            str(html_path),
            "--metadata",
            str(metadata_path),
            "--url",
            "https://www.arxiv-vanity.com/papers/9999.0001/",
        ]
    )
    assert code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "nothing done" in captured.err


def test_annotate_unrendered_document_gives_up(
    tmp_path: Path,
    metadata_payload: dict[str, Any],
    capsys: pytest.CaptureFixture[str],
) -> None:
    html_path, metadata_path = _write_inputs(
        tmp_path, "<html><body>Rendering...</body></html>", metadata_payload
    )
    code = cli.main(["annotate", str(html_path), "--metadata", str(metadata_path)])
    assert code == 1
    assert "never finished rendering" in capsys.readouterr().err


def test_annotate_url_without_arxiv_id(
    tmp_path: Path,
    rendered_html: str,
    metadata_payload: dict[str, Any],
) -> None:
    html_path, metadata_path = _write_inputs(tmp_path, rendered_html, metadata_payload)
    code = cli.main(
        [
            "annotate",
            str(html_path),
            "--metadata",
            str(metadata_path),
            "--url",
            "https://www.arxiv-vanity.com/",
        ]
    )
    assert code == 2


def test_fetch_prints_metadata_message(
    monkeypatch: pytest.MonkeyPatch,
    metadata_payload: dict[str, Any],
    capsys: pytest.CaptureFixture[str],
) -> None:
    def _fetch(self: S2Client, arxiv_id: str) -> MetadataMessage:
        return MetadataMessage.model_validate(metadata_payload)

    monkeypatch.setattr(S2Client, "fetch_metadata", _fetch)
    code = cli.main(["fetch", "1211.1036"])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["arxivId"] == "1211.1036"
    assert payload["s2Id"] == "f00dcafe"


def test_page_type(capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["page-type", "https://www.semanticscholar.org/paper/Title/abc123"])
    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"isS2PDP": True}
