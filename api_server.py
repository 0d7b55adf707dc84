"""
Directory Scraper API Server

FastAPI server that accepts a listing URL and page limit via HTTP POST,
runs the scraper, and returns a download link for the export file. Also
serves the single-page front end.

Usage:
    python -m uvicorn api_server:app --host 0.0.0.0 --port 3000

Environment variables:
    SCRAPER_OUTPUT_DIR  - Directory for export files (default: downloads)
    SCRAPER_PORT        - Port to listen on when run directly (default: 3000)
"""

import logging
import mimetypes
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field, field_validator

import scraper_config
from directory_scraper import scrape_to_file

logger = logging.getLogger(__name__)

# --- Configuration ---

OUTPUT_DIR = scraper_config.OUTPUT_DIR
STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app):
    scraper_config.configure_logging()
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(
    title="Directory Scraper API",
    description="HTTP API for scraping directory listings into downloadable files",
    version="1.0.0",
    lifespan=lifespan,
)


# --- Request/Response models ---


class ScrapeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    page_limit: Optional[int] = Field(default=None, ge=1, alias="pageLimit")
    export_format: Literal["csv", "jsonl"] = Field(default="csv", alias="format")

    @field_validator("page_limit", mode="before")
    @classmethod
    def blank_limit_is_unbounded(cls, value):
        # The form sends "" when the limit box is left empty
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
            return int(value) if value else None
        return value


class ScrapeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    download_url: str = Field(alias="downloadUrl")
    records: int
    pages: int
    outcome: str
    stop_reason: str = Field(alias="stopReason")


# --- Endpoints ---


@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/api/scrape", response_model=ScrapeResponse, response_model_by_alias=True)
async def scrape(req: ScrapeRequest):
    """Scrape a listing URL and return a download link for the results."""
    url = (req.url or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail="URL is required")

    limit_text = req.page_limit if req.page_limit is not None else "Unlimited"
    logger.info(f"Received scrape request for: {url} with limit: {limit_text}")

    try:
        report = await scrape_to_file(
            url,
            page_limit=req.page_limit,
            output_dir=str(OUTPUT_DIR),
            export_format=req.export_format,
        )
    except Exception as e:
        logger.exception(f"Scraping failed for {url}")
        raise HTTPException(status_code=500, detail=f"Scraping failed: {e}")

    result = report.result
    return ScrapeResponse(
        success=True,
        download_url=f"/download/{report.output_path.name}",
        records=len(result.records),
        pages=result.pages_visited,
        outcome=result.outcome.value,
        stop_reason=result.stop_reason,
    )


@app.get("/download/{filename}")
async def download(filename: str):
    """Download an export file from the output directory."""
    base = OUTPUT_DIR.resolve()
    target = (OUTPUT_DIR / filename).resolve()
    if not target.is_relative_to(base):
        raise HTTPException(status_code=403, detail="Access denied")
    if not target.exists() or not target.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    media_type, _ = mimetypes.guess_type(str(target))
    return FileResponse(target, media_type=media_type or "application/octet-stream", filename=target.name)


# --- Static files mount (must be last) ---

STATIC_DIR.mkdir(exist_ok=True)
app.mount("/", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("SCRAPER_PORT", "3000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
