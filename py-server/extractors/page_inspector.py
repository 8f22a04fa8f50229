"""
Page Inspector

Public-facing API for reading back what was drawn on PDF pages: media box,
filled rectangles, text runs and image placements. Uses pdfplumber, so the
result reflects how a reader interprets the content streams rather than how
they were written.
"""

import io
import logging
from typing import Any, Dict, List, Optional, Union, BinaryIO

import pdfplumber

from models.pdf_types import (
    BoundingBox,
    InspectedImage,
    InspectedRect,
    InspectedText,
    PageInspection,
)
from utils.colors import components_to_hex

logger = logging.getLogger(__name__)

PdfSource = Union[str, bytes, BinaryIO]


def _round(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(float(value), 2)


def _media_box(page) -> BoundingBox:
    x0, y0, x1, y1 = (float(v) for v in page.mediabox)
    return BoundingBox(x=_round(x0), y=_round(y0), width=_round(x1 - x0), height=_round(y1 - y0))


def _inspect_rects(page) -> List[InspectedRect]:
    rects = []
    for rect in page.rects:
        if not rect.get('fill'):
            continue
        rects.append(InspectedRect(
            x=_round(rect['x0']),
            y=_round(rect['y0']),
            width=_round(rect['width']),
            height=_round(rect['height']),
            fill=components_to_hex(rect.get('non_stroking_color')),
        ))
    return rects


def _inspect_texts(page) -> List[InspectedText]:
    """Group characters into runs sharing baseline, font, size and color."""
    runs: List[InspectedText] = []
    current_key = None
    buffer: List[str] = []
    origin: Dict[str, Any] = {}

    def flush():
        if buffer:
            runs.append(InspectedText(text=''.join(buffer), **origin))

    for char in page.chars:
        color = components_to_hex(char.get('non_stroking_color'))
        key = (round(char['y0'], 1), char.get('fontname'), _round(char.get('size')), color)
        if key != current_key:
            flush()
            buffer = []
            current_key = key
            origin = {
                'x': _round(char['x0']),
                'y': _round(char['y0']),
                'fontName': char.get('fontname'),
                'fontSize': _round(char.get('size')),
                'color': color,
            }
        buffer.append(char['text'])

    flush()
    return runs


def _inspect_images(page) -> List[InspectedImage]:
    return [
        InspectedImage(
            name=image.get('name'),
            x=_round(image['x0']),
            y=_round(image['y0']),
            width=_round(image['width']),
            height=_round(image['height']),
        )
        for image in page.images
    ]


def inspect_pdf(source: PdfSource) -> List[PageInspection]:
    """
    Inspect every page of a PDF.

    Args:
        source: File path, PDF bytes or a binary file object.

    Returns:
        One PageInspection per page, in page order.
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    try:
        with pdfplumber.open(source) as pdf:
            inspections = []
            for page_index, page in enumerate(pdf.pages):
                inspection = PageInspection(
                    pageIndex=page_index,
                    mediaBox=_media_box(page),
                    rects=_inspect_rects(page),
                    texts=_inspect_texts(page),
                    images=_inspect_images(page),
                )
                logger.debug(
                    f"Page {page_index + 1}: {len(inspection.rects)} rects, "
                    f"{len(inspection.texts)} text runs, {len(inspection.images)} images"
                )
                inspections.append(inspection)

            logger.info(f"Inspected {len(inspections)} pages")
            return inspections

    except FileNotFoundError:
        logger.error(f"PDF file not found: {source}")
        raise
    except Exception as e:
        logger.error(f"Page inspection failed: {e}", exc_info=True)
        raise
