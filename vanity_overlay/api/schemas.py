from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Wire payloads use the upstream camelCase names; attributes are snake_case.
# Upstream reference records carry many more keys than we read, so extras are
# ignored rather than rejected.
_WIRE_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


class TitleText(BaseModel):
    model_config = _WIRE_CONFIG

    text: str = ""


class CitationContext(BaseModel):
    model_config = _WIRE_CONFIG

    text: str = ""


class Reference(BaseModel):
    model_config = _WIRE_CONFIG

    id: str
    slug: str = ""
    title: TitleText = Field(default_factory=TitleText)
    citation_contexts: list[CitationContext] = Field(
        default_factory=list, alias="citationContexts"
    )

    @field_validator("title", mode="before")
    @classmethod
    def _title_from_string(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, str):
            return {"text": value}
        return value

    @field_validator("citation_contexts", mode="before")
    @classmethod
    def _contexts_from_strings(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [{"text": v} if isinstance(v, str) else v for v in value]
        return value


class Author(BaseModel):
    model_config = _WIRE_CONFIG

    name: str
    url: str


class MetadataRequest(BaseModel):
    model_config = _WIRE_CONFIG

    arxiv_id: str = Field(alias="arxivId")


class MetadataMessage(BaseModel):
    model_config = _WIRE_CONFIG

    arxiv_id: str = Field(alias="arxivId")
    references: list[Reference] = Field(default_factory=list)
    s2_id: str = Field(alias="s2Id")
    authors: list[Author] = Field(default_factory=list)


class PageTypeNotification(BaseModel):
    model_config = _WIRE_CONFIG

    is_s2_pdp: bool = Field(alias="isS2PDP")


class AnnotationCounts(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bib_entries_linked: int
    context_spans_linked: int
    authors_linked: int
    detail_link_injected: bool


class AnnotateRequest(BaseModel):
    model_config = _WIRE_CONFIG

    html: str
    page_url: str | None = Field(default=None, alias="pageUrl")
    metadata: MetadataMessage


class AnnotateResponse(BaseModel):
    html: str
    result: AnnotationCounts


class PageTypeRequest(BaseModel):
    url: str
