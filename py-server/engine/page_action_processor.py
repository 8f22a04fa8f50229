"""
Page Action Processor

Applies page-action batches to the engine's document. Follows the processor
composition pattern: the processor owns options, the embedded-image cache and
logging, while the per-page work is done by PageActionInterpreter.
"""

import logging
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from pikepdf import Page, Stream

from engine.base_processor import BaseProcessor
from engine.config import PageActionOptions
from engine.page_interpreter import PageActionInterpreter
from models.pdf_types import DocumentActions, PageActions
from utils.image_codec import decode_image, embed_as_jpeg, resolve_image_path
from utils.validation import MissingFieldError

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class PageActionProcessor(BaseProcessor):
    """
    Processor for drawing page actions.

    Handles:
    - New pages (media box + actions), built detached and added on success
    - Existing pages selected by 0-based index
    - Whole documents made of several page batches

    An image file drawn more than once in the same document is embedded once;
    the XObject is cached by resolved path and JPEG quality until cleanup().
    """

    def __init__(self, engine: 'PDFEngine', options: Optional[PageActionOptions] = None):
        """
        Initialize PageActionProcessor.

        Args:
            engine: Reference to parent PDFEngine
            options: Drawing options (uses defaults if None)
        """
        super().__init__(engine)
        self.options = options or PageActionOptions()

        if not self.options.validate():
            raise ValueError("Invalid PageActionOptions")

        self._image_cache: Dict[Tuple[str, int], Stream] = {}

    def initialize(self) -> None:
        super().initialize()
        self._image_cache = {}

    def cleanup(self) -> None:
        if self._image_cache:
            logger.debug(f"Releasing {len(self._image_cache)} cached image XObject(s)")
        self._image_cache.clear()
        super().cleanup()

    @property
    def cached_image_count(self) -> int:
        return len(self._image_cache)

    def load_image(self, image_path: str) -> Stream:
        """
        Return the image XObject for `image_path`, embedding it on first use.

        Raises:
            ImageDecodeError: If the path is outside the image root or the
                file cannot be decoded (nothing is cached in that case)
        """
        self.require_ready()

        path = resolve_image_path(image_path, self.options.image_root)
        key = (path, self.options.jpeg_quality)

        xobject = self._image_cache.get(key)
        if xobject is None:
            xobject = embed_as_jpeg(
                self.engine.pikepdf_document,
                decode_image(path),
                quality=self.options.jpeg_quality
            )
            self._image_cache[key] = xobject
        else:
            logger.debug(f"Reusing embedded image for {image_path}")
        return xobject

    def apply_page_actions(self, page_actions: PageActions) -> Page:
        """
        Apply one batch: create a page when pageIndex is absent, otherwise
        draw on the existing page.

        Args:
            page_actions: Decoded page batch

        Returns:
            The created or modified page

        Raises:
            MissingFieldError: If a new page has no media box
            PageNotFoundError: If pageIndex is out of range
        """
        self.require_ready()

        if page_actions.creates_page:
            if page_actions.mediaBox is None:
                raise MissingFieldError('mediaBox')

            page = self.engine.new_page(page_actions.mediaBox)
            self._draw(page, page_actions)
            page = self.engine.add_page(page)
            logger.info(f"Created page {self.engine.get_page_count()} with {len(page_actions.actions)} action(s)")
        else:
            page = self.engine.get_page(page_actions.pageIndex)
            self._draw(page, page_actions, media_box=page_actions.mediaBox)
            logger.info(f"Modified page {page_actions.pageIndex + 1} with {len(page_actions.actions)} action(s)")

        return page

    def _draw(self, page: Page, page_actions: PageActions, media_box=None) -> None:
        interpreter = PageActionInterpreter(
            self.engine.pikepdf_document,
            page,
            media_box=media_box,
            options=self.options,
            image_loader=self.load_image
        )
        with interpreter:
            interpreter.apply_actions(page_actions.actions)

    def apply_document_actions(self, document_actions: DocumentActions) -> List[Page]:
        """
        Apply page batches in order.

        Args:
            document_actions: Decoded document batch

        Returns:
            Pages touched, in batch order
        """
        self.require_ready()

        created = sum(1 for batch in document_actions.pages if batch.creates_page)
        logger.info(
            f"Applying {len(document_actions.pages)} page batch(es): "
            f"{created} new, {len(document_actions.pages) - created} modified"
        )

        return [self.apply_page_actions(batch) for batch in document_actions.pages]
