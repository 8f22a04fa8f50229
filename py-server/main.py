"""PDF Page Actions Python Server"""

import sys
import logging
import asyncio
import json
from typing import Optional, List
import os

import uvicorn
from fastapi import FastAPI, UploadFile, File, HTTPException, Query, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from rich.console import Console
from rich.logging import RichHandler

from engine import PageActionOptions
from models.pdf_types import (
    DocumentActions,
    PageActionConfig,
    PageInspection,
    decode_document_actions,
)
from extractors.pdf_modifier import create_pdf, modify_pdf
from extractors.page_inspector import inspect_pdf
from utils.endpoint_decorators import handle_page_actions, handle_pdf_processing

API_VERSION = "1.0.0"
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
DEFAULT_TIMEOUT_SECONDS = 300
MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 600
# imagePath values in requests are resolved inside this directory
IMAGE_ROOT = os.path.abspath(os.getenv("IMAGE_ROOT", "images"))

logger = logging.getLogger("rich")

app = FastAPI(
    title="PDF Page Actions API",
    description="Draw text, rectangles and images onto PDF pages from JSON actions",
    version=API_VERSION
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _parse_actions(actions: str) -> DocumentActions:
    """Parse the `actions` form field; schema errors propagate as page action errors."""
    try:
        raw = json.loads(actions)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON in actions: {str(e)}")
    return decode_document_actions(raw)


def _parse_options(config: Optional[str]) -> PageActionOptions:
    if not config:
        return PageActionOptions(image_root=IMAGE_ROOT)
    try:
        config_dict = json.loads(config)
        page_config = PageActionConfig(**config_dict)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON in config: {str(e)}")
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Invalid config structure: {str(e)}")
    # The image root is server-side only; request config cannot widen it
    return PageActionOptions.from_dict({**page_config.model_dump(), 'image_root': IMAGE_ROOT})


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "message": "PDF Page Actions API",
        "version": API_VERSION,
        "features": [
            "Create PDF pages from JSON page actions",
            "Draw on existing PDF pages (appended over existing content)",
            "Text in a standard serif face with RGB fill",
            "Filled rectangles",
            "JPEG images at intrinsic or requested size",
            "Read back drawn pages (media box, rectangles, text, images)"
        ]
    }

@app.get("/health")
async def health_check():
    """Health check with dependency verification"""
    try:
        import PIL
        import pdfplumber
        import pikepdf
        import psutil

        return {
            "status": "healthy",
            "version": API_VERSION,
            "features": {
                "page_drawing": "pikepdf",
                "image_encoding": "Pillow",
                "page_inspection": "pdfplumber"
            },
            "dependencies": {
                "PIL": PIL.__version__,
                "pdfplumber": pdfplumber.__version__,
                "pikepdf": pikepdf.__version__,
                "psutil": psutil.__version__
            }
        }
    except ImportError as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": f"Missing dependency: {str(e)}"
            }
        )

@app.post("/create-pdf")
@handle_page_actions
async def create_pdf_endpoint(
    *,
    actions: str = Form(..., description="JSON string containing DocumentActions: {\"pages\": [...]}"),
    config: Optional[str] = Form(None, description="Optional JSON string containing PageActionConfig"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Build a new PDF from page batches.

    **Actions (JSON):**
    - `pages`: list of page batches, each with `mediaBox` and `actions`
    - Action types: `text`, `rectangle`, `image` (others are skipped)

    **Returns:**
    - The new PDF (`application/pdf`)
    """
    document_actions = _parse_actions(actions)
    options = _parse_options(config)

    logger.info(f"Creating PDF ({len(document_actions.pages)} page batches)")

    pdf_bytes = await asyncio.to_thread(
        create_pdf,
        document_actions,
        options
    )

    logger.info(f"Successfully created PDF ({len(pdf_bytes)} bytes)")

    return Response(
        content=pdf_bytes,
        media_type='application/pdf',
        headers={
            "Content-Disposition": "attachment; filename=document.pdf"
        }
    )

@app.post("/modify-pdf")
@handle_pdf_processing
async def modify_pdf_endpoint(
    *,
    request: Request,
    file: UploadFile = File(...),
    actions: str = Form(..., description="JSON string containing DocumentActions: {\"pages\": [...]}"),
    config: Optional[str] = Form(None, description="Optional JSON string containing PageActionConfig"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Draw page batches into an uploaded PDF.

    Batches with `pageIndex` (0-based) draw on that page; batches without
    one append a new page. If any batch fails, no PDF is returned.

    **Returns:**
    - The modified PDF as an attachment
    """
    document_actions = _parse_actions(actions)
    options = _parse_options(config)

    temp_file_path = request.state.temp_file_path

    logger.info(f"Modifying PDF ({len(document_actions.pages)} page batches)")
    for index, batch in enumerate(document_actions.pages):
        target = "new page" if batch.creates_page else f"page index {batch.pageIndex}"
        logger.debug(f"Batch {index}: {len(batch.actions)} actions on {target}")

    modified_pdf_bytes = await asyncio.to_thread(
        modify_pdf,
        temp_file_path,
        document_actions,
        options
    )

    if not modified_pdf_bytes:
        raise HTTPException(status_code=500, detail="Failed to apply page actions to PDF.")

    logger.info(f"Successfully modified PDF")

    filename = file.filename if file.filename else "document.pdf"
    return Response(
        content=modified_pdf_bytes,
        media_type='application/pdf',
        headers={
            "Content-Disposition": f"attachment; filename=modified_{filename}"
        }
    )

@app.post("/inspect-pdf", response_model=List[PageInspection])
@handle_pdf_processing
async def inspect_pdf_endpoint(
    *,
    request: Request,
    file: UploadFile = File(...),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Read back page content.

    **Returns:**
    - One entry per page with media box, filled rectangles, text runs
      (font, size, color) and image placements
    """
    temp_file_path = request.state.temp_file_path

    logger.info("Inspecting PDF pages")

    inspections = await asyncio.to_thread(inspect_pdf, temp_file_path)

    logger.info(f"Successfully inspected {len(inspections)} pages")
    return inspections

def _configure_server_logging():
    """Configure logging with Rich handler and filters for clean output"""
    console = Console(force_terminal=True)

    # Get level from env, default to INFO
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    class ShutdownFilter(logging.Filter):
        """Filter out shutdown-related log messages"""
        def filter(self, record):
            if record.exc_info and record.exc_info[0] in (KeyboardInterrupt, asyncio.CancelledError):
                return False
            if "CancelledError" in str(record.msg) or "KeyboardInterrupt" in str(record.msg):
                return False
            return True

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=True
    )
    rich_handler.addFilter(ShutdownFilter())

    # Silence everything by default
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[rich_handler])

    # Allow server startup logs
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)

    for module_name in ["main", "rich", "engine", "extractors", "processors", "utils", "models"]:
        logging.getLogger(module_name).setLevel(log_level)

    return console

def _find_free_port(start_port: int = 8000) -> int:
    """Find an available port starting from the given port"""
    import socket

    port = start_port
    max_port = start_port + 100

    while port < max_port:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(('localhost', port))
                return port
        except OSError:
            port += 1

    return start_port

server_console = _configure_server_logging()

if __name__ == "__main__":
    free_port = _find_free_port()
    server_console.print(f"[bold green]Starting server on http://localhost:{free_port}[/bold green]")
    server_console.print(f"Image files are read from {IMAGE_ROOT}")

    try:
        uvicorn.run("main:app", host="0.0.0.0", port=free_port, reload=True, log_config=None)
    except KeyboardInterrupt:
        server_console.print("\n[bold yellow]Server stopped.[/bold yellow]")
        sys.exit(0)
