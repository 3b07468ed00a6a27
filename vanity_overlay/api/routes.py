from __future__ import annotations

import logging

from fastapi import APIRouter

from vanity_overlay.annotation.pipeline import annotate_document
from vanity_overlay.api.schemas import (
    AnnotateRequest,
    AnnotateResponse,
    AnnotationCounts,
    MetadataMessage,
    MetadataRequest,
    PageTypeNotification,
    PageTypeRequest,
)
from vanity_overlay.document import VanityDocument
from vanity_overlay.s2_client import S2Client, S2ClientError
from vanity_overlay.settings import get_settings
from vanity_overlay.urls import arxiv_id_from_url, is_paper_detail_page

logger = logging.getLogger(__name__)

router = APIRouter()


class OverlayAPIError(Exception):
    """An expected failure with a stable machine-readable code."""

    def __init__(self, status_code: int, code: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


@router.post("/annotate", response_model=AnnotateResponse)
def post_annotate(body: AnnotateRequest) -> AnnotateResponse:
    if body.page_url is not None:
        page_arxiv_id = arxiv_id_from_url(body.page_url)
        if page_arxiv_id != body.metadata.arxiv_id:
            raise OverlayAPIError(409, "metadata_mismatch", "Metadata is for a different paper")

    document = VanityDocument.from_html(body.html)
    # A submitted document cannot finish rendering later; there is nothing to poll.
    if not document.is_rendered():
        raise OverlayAPIError(422, "document_not_rendered", "Document has not finished rendering")

    result = annotate_document(document, body.metadata, settings=get_settings())
    return AnnotateResponse(
        html=document.to_html(),
        result=AnnotationCounts.model_validate(result),
    )


@router.post("/metadata", response_model=MetadataMessage, response_model_by_alias=True)
def post_metadata(body: MetadataRequest) -> MetadataMessage:
    try:
        with S2Client(settings=get_settings()) as client:
            return client.fetch_metadata(body.arxiv_id)
    except S2ClientError as exc:
        logger.warning("Metadata fetch failed for %s: %s", body.arxiv_id, exc)
        if exc.status_code == 404:
            raise OverlayAPIError(
                404, "paper_not_found", "No Semantic Scholar paper for this arXiv id"
            ) from exc
        raise OverlayAPIError(
            502, "metadata_upstream_failed", "Upstream metadata request failed"
        ) from exc


@router.post("/page-type", response_model=PageTypeNotification, response_model_by_alias=True)
def post_page_type(body: PageTypeRequest) -> PageTypeNotification:
    return PageTypeNotification(is_s2_pdp=is_paper_detail_page(body.url))
