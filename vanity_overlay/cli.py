from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from vanity_overlay.api.schemas import MetadataMessage, PageTypeNotification
from vanity_overlay.document import VanityDocument
from vanity_overlay.logging_config import setup_logging
from vanity_overlay.readiness import GateState
from vanity_overlay.s2_client import S2Client, S2ClientError
from vanity_overlay.session import OverlaySession, SessionError
from vanity_overlay.settings import get_settings
from vanity_overlay.urls import arxiv_id_from_url, is_paper_detail_page


def _load_metadata(path: str) -> MetadataMessage:
    raw = Path(path).read_text(encoding="utf-8")
    return MetadataMessage.model_validate_json(raw)


def _write_output(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)


def cmd_annotate(args: argparse.Namespace) -> int:
    settings = get_settings()
    if not args.wait:
        settings = settings.model_copy(update={"readiness_max_attempts": 1})

    if args.fetch:
        arxiv_id = arxiv_id_from_url(args.url) if args.url else None
        if not arxiv_id:
            print("--fetch needs a --url with an arXiv id in its path.", file=sys.stderr)
            return 2
        try:
            with S2Client(settings=settings) as client:
                message = client.fetch_metadata(arxiv_id)
        except S2ClientError as exc:
            print(f"Fetching metadata failed: {exc}", file=sys.stderr)
            return 1
    else:
        message = _load_metadata(args.metadata)

    page_url = args.url or f"{settings.vanity_base_url.rstrip('/')}/papers/{message.arxiv_id}/"
    html_path = Path(args.html)
    try:
        session = OverlaySession(
            page_url,
            lambda: VanityDocument.from_html(html_path.read_text(encoding="utf-8")),
            settings=settings,
        )
    except SessionError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    gate = session.receive(message)
    if gate is None:
        print(
            f"Metadata is for {message.arxiv_id}, page is {session.arxiv_id}; nothing done.",
            file=sys.stderr,
        )
        return 1
    if gate.state is GateState.GAVE_UP or gate.result is None or session.document is None:
        print(
            f"Document never finished rendering ({gate.attempts} checks); nothing done.",
            file=sys.stderr,
        )
        return 1

    result = gate.result
    _write_output(session.document.to_html(), args.output)
    print(
        "Annotation complete: "
        f"{result.bib_entries_linked} bib entries; "
        f"{result.context_spans_linked} citation mentions; "
        f"{result.authors_linked} authors; "
        f"detail link {'added' if result.detail_link_injected else 'skipped'}.",
        file=sys.stderr,
    )
    return 0


def cmd_fetch(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        with S2Client(settings=settings) as client:
            message = client.fetch_metadata(args.arxiv_id)
    except S2ClientError as exc:
        print(f"Fetching metadata failed: {exc}", file=sys.stderr)
        return 1
    _write_output(message.model_dump_json(by_alias=True, indent=2) + "\n", args.output)
    return 0


def cmd_page_type(args: argparse.Namespace) -> int:
    notification = PageTypeNotification(is_s2_pdp=is_paper_detail_page(args.url))
    print(json.dumps(notification.model_dump(by_alias=True)))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="vanity-overlay")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_annotate = sub.add_parser(
        "annotate", help="Link references, citation mentions and authors in a rendered paper"
    )
    p_annotate.add_argument("html", type=str, help="Rendered ArXiv Vanity HTML file")
    source = p_annotate.add_mutually_exclusive_group(required=True)
    source.add_argument("--metadata", type=str, help="Metadata message JSON file")
    source.add_argument(
        "--fetch", action="store_true", default=False, help="Fetch metadata from Semantic Scholar"
    )
    p_annotate.add_argument(
        "--url", type=str, default=None, help="Page URL the document was rendered at"
    )
    p_annotate.add_argument(
        "--wait",
        action="store_true",
        default=False,
        help="Re-read the HTML file until the document has finished rendering",
    )
    p_annotate.add_argument("-o", "--output", type=str, default=None)
    p_annotate.set_defaults(func=cmd_annotate)

    p_fetch = sub.add_parser("fetch", help="Fetch the metadata message for an arXiv id")
    p_fetch.add_argument("arxiv_id", type=str)
    p_fetch.add_argument("-o", "--output", type=str, default=None)
    p_fetch.set_defaults(func=cmd_fetch)

    p_page_type = sub.add_parser(
        "page-type", help="Report whether a URL is a Semantic Scholar paper detail page"
    )
    p_page_type.add_argument("url", type=str)
    p_page_type.set_defaults(func=cmd_page_type)

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(log_format=settings.log_format, log_level=settings.log_level)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
