"""
PDF Page Action Module

This module provides a public API for drawing page actions into PDFs.
Uses the PDFEngine + PageActionProcessor architecture.
"""

import logging
from typing import Optional

from engine import PDFEngine, EngineConfig, PageActionOptions
from models.pdf_types import DocumentActions

logger = logging.getLogger(__name__)


def _engine_config(options: Optional[PageActionOptions]) -> EngineConfig:
    if options is None:
        return EngineConfig.default()
    return EngineConfig(page_action_options=options.to_dict())


def create_pdf(
        document_actions: DocumentActions,
        options: Optional[PageActionOptions] = None
) -> bytes:
    """
    Build a new PDF from page batches.

    Every batch must carry a media box; batches with a pageIndex draw on a
    page created by an earlier batch.

    Args:
        document_actions: Decoded document batch.
        options: Drawing options (uses defaults if None).

    Returns:
        New PDF as bytes.
    """
    logger.info(f"Creating PDF from {len(document_actions.pages)} page batch(es)")

    with PDFEngine(config=_engine_config(options)) as engine:
        engine.page_action_processor.apply_document_actions(document_actions)
        result_bytes = engine.save_to_bytes()

        logger.info(f"Created PDF with {engine.get_page_count()} page(s), output size: {len(result_bytes)} bytes")
        return result_bytes


def modify_pdf(
        file_path: str,
        document_actions: DocumentActions,
        options: Optional[PageActionOptions] = None
) -> bytes:
    """
    Draw page batches into an existing PDF.

    The document is only serialized once every batch has succeeded; the
    input file itself is never written.

    Args:
        file_path: Path to the input PDF file.
        document_actions: Decoded document batch.
        options: Drawing options (uses defaults if None).

    Returns:
        Modified PDF as bytes.
    """
    if not document_actions.pages:
        logger.warning("No page batches specified, returning original PDF")
        with open(file_path, 'rb') as f:
            return f.read()

    logger.info(f"Starting page actions on {len(document_actions.pages)} batch(es)")

    try:
        with PDFEngine(file_path, config=_engine_config(options)) as engine:
            engine.page_action_processor.apply_document_actions(document_actions)
            result_bytes = engine.save_to_bytes()

            logger.info(f"Successfully applied {len(document_actions.pages)} batch(es), output size: {len(result_bytes)} bytes")
            return result_bytes

    except Exception as e:
        logger.error(f"Failed to apply page actions: {e}")
        raise
