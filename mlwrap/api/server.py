"""FastAPI server for script segmentation and wrapping."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field
from soupsieve import SelectorSyntaxError

from .. import __version__
from ..config import WrapperConfig, load_config
from ..document import auto_wrap, wrap_html
from ..markup import SpanRenderer
from ..script_segmenter import ScriptSegmenter, Segment

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(name)s: %(message)s")
_LOGGER = logging.getLogger(__name__)

# Default paths
CONFIG_PATH = Path(os.environ.get("MLWRAP_CONFIG", "local/mlwrap.json"))


class SegmentRequest(BaseModel):
    """Request body for text segmentation."""

    text: str = Field(..., description="Text to segment")
    render: bool = Field(False, description="Also return the wrapped markup")


class SegmentInfo(BaseModel):
    """A single script segment."""

    text: str
    start: int
    end: int
    script: str
    lang: str


class SegmentResponse(BaseModel):
    """Segmentation result."""

    segments: list[SegmentInfo]
    dropped: list[SegmentInfo]
    html: Optional[str] = None


class WrapRequest(BaseModel):
    """Request body for HTML wrapping."""

    html: str = Field(..., description="HTML document or fragment")
    selector: Optional[str] = Field(None, description="CSS selector of the roots to wrap (default: autoWrapSelector)")


class WrapResponse(BaseModel):
    """Wrapped HTML and the number of root elements processed."""

    html: str
    elements: int


class ScriptInfo(BaseModel):
    """Script information."""

    name: str
    lang: str
    classes: list[str]


# Global state
_config: WrapperConfig = WrapperConfig()
_segmenter: ScriptSegmenter | None = None


def _get_segmenter() -> ScriptSegmenter:
    global _segmenter
    if _segmenter is None:
        _segmenter = ScriptSegmenter(_config)
    return _segmenter


def _segment_info(seg: Segment) -> SegmentInfo:
    return SegmentInfo(text=seg.text, start=seg.start, end=seg.end, script=seg.script, lang=seg.lang)


def create_app(config: WrapperConfig | None = None) -> FastAPI:
    """Create the FastAPI application."""
    global _config, _segmenter

    if config is None:
        config = load_config(CONFIG_PATH)
    _config = config
    _segmenter = None

    app = FastAPI(
        title="mlwrap API",
        description="Script segmentation and wrapping API",
        version=__version__,
    )

    @app.get("/")
    async def health():
        """Health check and server info."""
        return {
            "status": "ok",
            "version": __version__,
            "scripts": list(_config.script_ranges.keys()),
        }

    @app.get("/llms.txt", response_class=Response)
    async def llms_txt():
        """LLM-readable API documentation."""
        content = """# mlwrap API Documentation for LLMs

Splits text into runs by writing system (latin, korean, japanese, chinese,
arabic, cyrillic, greek, hebrew, thai, devanagari) and wraps each run in
<span lang="ko" data-script="korean" class="ml-ko">...</span>.

## POST /segment
Request Body (JSON):
{
  "text": "Hello 안녕하세요 world",   // Text to segment
  "render": true                      // Optional: include wrapped markup
}
Response: {"segments": [{"text", "start", "end", "script", "lang"}], "dropped": [...], "html": "..."}

## POST /wrap
Request Body (JSON):
{
  "html": "<p>Hello 안녕</p>",     // HTML document or fragment
  "selector": "p"                   // Optional: CSS selector (default: autoWrapSelector)
}
Response: {"html": "...", "elements": 1}

## Other Endpoints
GET /: Health check and server info
GET /scripts: Configured scripts with language tags and CSS classes

## Notes
- Text and attribute values are HTML-escaped in the output
- Text already inside a data-script span is never wrapped again
- A selector that matches nothing wraps nothing (elements: 0)
"""
        return Response(content=content, media_type="text/plain")

    @app.get("/scripts", response_model=list[ScriptInfo])
    async def list_scripts():
        """List configured scripts."""
        segmenter = _get_segmenter()
        renderer = SpanRenderer(_config)
        return [
            ScriptInfo(name=script, lang=segmenter.language_for(script), classes=renderer.class_names(script))
            for script in _config.script_ranges
        ]

    @app.post("/segment", response_model=SegmentResponse)
    async def segment(request: SegmentRequest):
        """Segment text by script."""
        result = _get_segmenter().segment(request.text)
        markup = SpanRenderer(_config).render_all(result.segments) if request.render else None
        return SegmentResponse(
            segments=[_segment_info(seg) for seg in result.segments],
            dropped=[_segment_info(seg) for seg in result.dropped],
            html=markup,
        )

    @app.post("/wrap", response_model=WrapResponse)
    async def wrap(request: WrapRequest):
        """Wrap the text of an HTML document in script spans."""
        try:
            if request.selector is None and _config.auto_wrap:
                soup = BeautifulSoup(request.html, "html.parser")
                count = await auto_wrap(soup, _config)
                markup = str(soup)
            else:
                markup, count = wrap_html(request.html, target=request.selector, config=_config)
        except SelectorSyntaxError as e:
            raise HTTPException(status_code=400, detail=f"Invalid selector: {e}")
        _LOGGER.info("Wrapped %d elements (%d chars of HTML)", count, len(request.html))
        return WrapResponse(html=markup, elements=count)

    return app


app = create_app()


def run():
    """Run the server with uvicorn."""
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    _LOGGER.info("Starting server at http://%s:%d", host, port)
    uvicorn.run("mlwrap.api.server:app", host=host, port=port, reload=False)
