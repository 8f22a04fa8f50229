"""
Page Action Interpreter

Applies an ordered list of page actions (text, rectangle, image) to a single
page. Drawing goes through a ContentStreamWriter that buffers everything, so
the target page and page tree are only changed once the whole batch has
succeeded.
"""

import logging
from collections import Counter
from typing import Callable, Dict, Optional, Sequence

from pikepdf import Pdf, Page, Dictionary, Array, Name, Stream

from constants.pdf_keys import KEY_TYPE, KEY_MEDIA_BOX, KEY_RESOURCES, VAL_PAGE
from engine.config import PageActionOptions
from models.pdf_types import (
    MediaBox,
    PageAction,
    TextAction,
    RectangleAction,
    ImageAction,
)
from processors.content_stream import ContentStreamWriter
from utils.image_codec import decode_image, embed_as_jpeg, resolve_image_path
from utils.validation import MissingFieldError, PageNotFoundError

logger = logging.getLogger(__name__)

# All text is drawn in one standard serif face
FONT_FACE = "Times-Roman"


def lookup_page(pdf: Pdf, page_index: int) -> Page:
    """
    Get an existing page by 0-based index.

    Raises:
        PageNotFoundError: If the index is negative or past the last page
    """
    page_count = len(pdf.pages)
    if page_index < 0 or page_index >= page_count:
        raise PageNotFoundError(page_index, page_count)
    return pdf.pages[page_index]


def new_detached_page(pdf: Pdf, media_box: MediaBox) -> Page:
    """Create a page owned by `pdf` but not yet part of its page tree."""
    page_dict = Dictionary({
        KEY_TYPE: Name(VAL_PAGE),
        KEY_MEDIA_BOX: Array(media_box.to_pdf_rect()),
        KEY_RESOURCES: Dictionary(),
    })
    return Page(pdf.make_indirect(page_dict))


class PageActionInterpreter:
    """
    Interpreter for one batch of page actions against one page.

    Use as a context manager: on a clean exit the buffered drawing (and any
    pending media box) is committed to the page; if an action raises, the
    buffer is discarded and the page is left untouched.

    Example:
        >>> with PageActionInterpreter(pdf, page) as interpreter:
        ...     interpreter.apply_actions(actions)
    """

    def __init__(
        self,
        pdf: Pdf,
        page: Page,
        media_box: Optional[MediaBox] = None,
        options: Optional[PageActionOptions] = None,
        image_loader: Optional[Callable[[str], Stream]] = None
    ):
        """
        Open a content stream against `page`.

        Args:
            pdf: Document that owns the page
            page: Target page
            media_box: Media box to set on the page when the batch commits
            options: Drawing options (uses defaults if None)
            image_loader: Turns an imagePath into an image XObject; defaults
                to load_image, which embeds a fresh copy on every call
        """
        self.pdf = pdf
        self.page = page
        self.media_box = media_box
        self.options = options or PageActionOptions()
        self.image_loader = image_loader or self.load_image

        if not self.options.validate():
            raise ValueError("Invalid PageActionOptions")

        self.stream = ContentStreamWriter(
            pdf, page, isolate_existing_content=self.options.isolate_existing_content
        )
        self.drawn_counts: Counter = Counter()
        self.skipped_count = 0

        self._handlers: Dict[type, Callable] = {
            TextAction: self.draw_text,
            RectangleAction: self.draw_rectangle,
            ImageAction: self.draw_image,
        }

    # Construction helpers

    @classmethod
    def create(
        cls,
        pdf: Pdf,
        media_box: Optional[MediaBox],
        actions: Sequence[PageAction],
        options: Optional[PageActionOptions] = None
    ) -> Page:
        """
        Draw `actions` on a brand-new page and append it to the document.

        Raises:
            MissingFieldError: If no media box is given
        """
        if media_box is None:
            raise MissingFieldError('mediaBox')

        page = new_detached_page(pdf, media_box)
        with cls(pdf, page, options=options) as interpreter:
            interpreter.apply_actions(actions)

        pdf.pages.append(page)
        return pdf.pages[-1]

    @classmethod
    def modify(
        cls,
        pdf: Pdf,
        page_index: Optional[int],
        actions: Sequence[PageAction],
        media_box: Optional[MediaBox] = None,
        options: Optional[PageActionOptions] = None
    ) -> Page:
        """
        Draw `actions` on top of the existing page at `page_index`.

        Raises:
            MissingFieldError: If no page index is given
            PageNotFoundError: If the index is out of range (checked before
                any stream is opened)
        """
        if page_index is None:
            raise MissingFieldError('pageIndex')

        page = lookup_page(pdf, page_index)
        with cls(pdf, page, media_box=media_box, options=options) as interpreter:
            interpreter.apply_actions(actions)
        return page

    # Context manager

    def __enter__(self) -> 'PageActionInterpreter':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.close()
        else:
            logger.warning(f"Page actions failed, discarding buffered drawing: {exc_val}")
            self.stream.discard()

        # Don't suppress exceptions
        return False

    def close(self) -> None:
        """Commit the media box and buffered drawing to the page."""
        if self.stream.is_closed:
            return
        if self.media_box is not None:
            self.page.obj[KEY_MEDIA_BOX] = Array(self.media_box.to_pdf_rect())
        logger.debug(
            f"Committing {self.stream.operation_count} operators "
            f"({dict(self.drawn_counts)} drawn, {self.skipped_count} skipped)"
        )
        self.stream.close()

    # Dispatch

    def apply_actions(self, actions: Sequence[PageAction]) -> Page:
        """
        Apply actions in order; later actions paint over earlier ones.

        Actions with an unrecognized type are skipped.
        """
        for index, action in enumerate(actions):
            handler = self._handlers.get(type(action))
            if handler is None:
                logger.debug(f"Skipping action {index}: unsupported type '{action.type}'")
                self.skipped_count += 1
                continue
            if handler(action) is False:
                self.skipped_count += 1
                continue
            self.drawn_counts[action.type] += 1

        return self.page

    # Drawing routines

    def draw_text(self, action: TextAction) -> None:
        self.stream.begin_text()
        self.stream.set_fill_color(*action.rgb)
        self.stream.set_font(FONT_FACE, action.fontSize)
        self.stream.move_to(action.position.x, action.position.y)
        self.stream.show_text(action.value)
        self.stream.end_text()

    def draw_rectangle(self, action: RectangleAction) -> None:
        self.stream.add_rect(action.x, action.y, action.width, action.height)
        self.stream.set_fill_color(*action.rgb)
        self.stream.fill()

    def draw_image(self, action: ImageAction) -> Optional[bool]:
        """Draw a JPEG image; other image types are skipped (returns False)."""
        if not action.is_supported:
            logger.debug(f"Skipping image {action.imagePath}: unsupported imageType '{action.imageType}'")
            return False

        xobject = self.image_loader(action.imagePath)

        size = action.scaled_size
        if size is not None:
            self.stream.draw_image(xobject, action.x, action.y, *size)
        else:
            self.stream.draw_image(xobject, action.x, action.y)

    def load_image(self, image_path: str) -> Stream:
        """
        Decode the file at `image_path` (resolved under options.image_root)
        and embed it as a JPEG XObject.

        Raises:
            ImageDecodeError: If the path is outside the image root or the
                file cannot be decoded
        """
        path = resolve_image_path(image_path, self.options.image_root)
        return embed_as_jpeg(self.pdf, decode_image(path), quality=self.options.jpeg_quality)
