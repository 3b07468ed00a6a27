from __future__ import annotations

import copy
from collections.abc import Generator
from typing import Any

import pytest

from vanity_overlay.api.schemas import MetadataMessage
from vanity_overlay.settings import clear_settings_cache

RENDERED_HTML = """<html><head><title>Paper</title></head><body>
<dt-article>
<div class="ltx_authors"><span class="ltx_personname">A. Smith, B. Jones</span></div>
<div class="engrafo-metadata-custom"><span class="arxiv-id">1211.1036</span></div>
<p class="ltx_p">As shown in <cite class="ltx_cite">[<a href="#bib.bib3" class="ltx_ref">3</a>]</cite>, results improve.</p>
<p class="ltx_p">Attention layers <cite class="ltx_cite">[<a href="#bib.bib4" class="ltx_ref">4</a>]</cite> replace
recurrence &amp; convolution.</p>
<ul class="ltx_biblist">
<li class="ltx_bibitem" id="bib.bib3">[3] A. Smith, <em>Deep Learning</em>, 2015</li>
<li class="ltx_bibitem" id="bib.bib4">[4] C. Doe, Attention Is All You Need, 2017</li>
</ul>
</dt-article>
<div id="cite-hover-boxes-container"><div class="dt-hover-box">A. Smith, Deep
Learning, 2015</div></div>
</body></html>
"""

METADATA = {
    "arxivId": "1211.1036",
    "s2Id": "f00dcafe",
    "references": [
        {
            "id": "abc123",
            "slug": "Deep-Learning-Smith",
            "title": {"text": "Deep Learning"},
            "citationContexts": [{"text": "shown in [3]"}],
        },
        {
            "id": "def456",
            "slug": "Attention-Is-All-You-Need-Doe",
            "title": {"text": "Attention is all you need"},
            "citationContexts": [{"text": "layers [4] replace\nrecurrence & convolution"}],
        },
        {
            "id": "zzz999",
            "slug": "Unrelated",
            "title": {"text": "A paper this document never mentions"},
            "citationContexts": [],
        },
    ],
    "authors": [
        {"name": "A. Smith", "url": "https://www.semanticscholar.org/author/1"},
        {"name": "B. Jones", "url": "https://www.semanticscholar.org/author/2"},
    ],
}


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture()
def rendered_html() -> str:
    return RENDERED_HTML


@pytest.fixture()
def metadata_message() -> MetadataMessage:
    return MetadataMessage.model_validate(METADATA)


@pytest.fixture()
def metadata_payload() -> dict[str, Any]:
    return copy.deepcopy(METADATA)
