"""
Image decoding and embedding helpers for image page actions.

Files are decoded with Pillow and re-encoded as baseline JPEG so that every
embedded image is a DCTDecode XObject regardless of the source encoding.
"""

import io
import os
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError
from pikepdf import Pdf, Stream, Dictionary, Name

from constants.pdf_keys import (
    KEY_TYPE, KEY_SUBTYPE, KEY_WIDTH, KEY_HEIGHT,
    KEY_COLOR_SPACE, KEY_BITS_PER_COMPONENT, KEY_FILTER,
    VAL_XOBJECT, VAL_IMAGE, VAL_DEVICE_RGB, VAL_DEVICE_GRAY, VAL_DCT_DECODE
)
from utils.validation import ImageDecodeError

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 75
GRAYSCALE_MODES = {'1', 'L', 'LA', 'I', 'I;16', 'F'}

def resolve_image_path(image_path: str, image_root: Optional[str] = None) -> str:
    """
    Resolve an action's imagePath against the configured image root.

    Without a root the path is used as given. With a root, relative paths are
    joined onto it and the result (after following symlinks) must stay inside
    the root; absolute paths are accepted only if they already point inside it.

    Raises:
        ImageDecodeError: If the resolved path is outside the image root
    """
    if image_root is None:
        return image_path

    try:
        root = os.path.realpath(image_root)
        candidate = os.path.realpath(os.path.join(root, image_path))
        inside = os.path.commonpath([root, candidate]) == root
    except ValueError:
        # Embedded NUL bytes, or paths on different drives
        inside = False

    if not inside:
        logger.warning(f"Rejected image path outside image root: {image_path}")
        raise ImageDecodeError(f"Image path is outside the image root: {image_path}")

    return candidate

def decode_image(file_path: str) -> Image.Image:
    """
    Decode an image file into an RGB or grayscale Pillow image.

    Args:
        file_path: Path to the image on disk

    Returns:
        Fully loaded image detached from the file handle

    Raises:
        ImageDecodeError: If the file is missing or not a readable image
    """
    try:
        with Image.open(file_path) as img:
            img.load()
            target_mode = 'L' if img.mode in GRAYSCALE_MODES else 'RGB'
            decoded = img.convert(target_mode)
    except FileNotFoundError:
        raise ImageDecodeError(f"Image file not found: {file_path}")
    except UnidentifiedImageError:
        raise ImageDecodeError(f"Not a recognized image file: {file_path}")
    except OSError as e:
        raise ImageDecodeError(f"Could not decode image {file_path}: {e}")

    logger.debug(f"Decoded image {file_path}: {decoded.width}x{decoded.height} {decoded.mode}")
    return decoded

def embed_as_jpeg(pdf: Pdf, image: Image.Image, quality: int = DEFAULT_JPEG_QUALITY) -> Stream:
    """
    Encode an image as JPEG and wrap it in an image XObject owned by `pdf`.

    Args:
        pdf: Document that will own the XObject
        image: Decoded image (RGB or L)
        quality: JPEG quality, 1-100

    Returns:
        Image XObject stream (not yet referenced by any page)
    """
    buffer = io.BytesIO()
    image.save(buffer, format='JPEG', quality=quality)
    jpeg_bytes = buffer.getvalue()

    colorspace = Name(VAL_DEVICE_GRAY) if image.mode == 'L' else Name(VAL_DEVICE_RGB)

    image_dict = Dictionary({
        KEY_TYPE: Name(VAL_XOBJECT),
        KEY_SUBTYPE: Name(VAL_IMAGE),
        KEY_WIDTH: image.width,
        KEY_HEIGHT: image.height,
        KEY_COLOR_SPACE: colorspace,
        KEY_BITS_PER_COMPONENT: 8,
        KEY_FILTER: Name(VAL_DCT_DECODE),
    })
    logger.debug(f"Embedded JPEG XObject: {image.width}x{image.height}, {len(jpeg_bytes)} bytes")
    return Stream(pdf, jpeg_bytes, image_dict)

def intrinsic_size(xobject: Stream) -> Tuple[int, int]:
    """Pixel width and height of an image XObject, drawn 1:1 in points."""
    return int(xobject[KEY_WIDTH]), int(xobject[KEY_HEIGHT])
