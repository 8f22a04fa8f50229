"""
Content Stream Writer

Accumulates drawing operators and new resources (fonts, image XObjects) for a
single page and commits them in one step on close(). Until then the page is
not touched, so a failed batch can simply be discarded.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from pikepdf import (
    Pdf, Page, Dictionary, Name, Operator, Stream, String,
    unparse_content_stream
)

from constants.pdf_keys import (
    KEY_CONTENTS, KEY_RESOURCES, KEY_FONT, KEY_XOBJECT,
    KEY_TYPE, KEY_SUBTYPE, KEY_BASE_FONT, KEY_ENCODING,
    VAL_FONT, VAL_TYPE1, VAL_WIN_ANSI_ENCODING,
    FONT_NAME_PREFIX, IMAGE_NAME_PREFIX
)
from constants.pdf_operators import (
    OP_SAVE_STATE, OP_RESTORE_STATE, OP_CTM,
    OP_SET_RGB_COLOR_FILL, OP_BEGIN_TEXT, OP_END_TEXT,
    OP_SET_FONT, OP_MOVE_TEXT, OP_SHOW_TEXT,
    OP_DO_XOBJECT, OP_RECTANGLE, OP_FILL
)
from utils.colors import rgb_to_fill_components
from utils.image_codec import intrinsic_size
from utils.validation import UnsupportedCharacterError

logger = logging.getLogger(__name__)

# Standard 14 fonts are drawn with WinAnsiEncoding
TEXT_ENCODING = 'cp1252'


class ContentStreamWriter:
    """
    Writer for one page's appended content stream.

    Mirrors the classic content-stream API (begin_text, set_font, show_text,
    add_rect, fill, draw_image, ...). Operators are buffered and written to
    the page only by close(); discard() drops them.
    """

    def __init__(self, pdf: Pdf, page: Page, isolate_existing_content: bool = True):
        """
        Open a writer against a page.

        Args:
            pdf: Document that owns the page
            page: Target page (attached or detached)
            isolate_existing_content: Wrap existing page content in q/Q
                before appending, so its graphics state cannot leak
        """
        self.pdf = pdf
        self.page = page
        self.isolate_existing_content = isolate_existing_content

        self._operations: List[Tuple[list, Operator]] = []
        self._pending_fonts: Dict[str, Dictionary] = {}
        self._pending_xobjects: Dict[str, Stream] = {}
        self._font_names: Dict[str, str] = {}
        self._reserved_names: Set[str] = self._collect_resource_names()
        self._in_text = False
        self._closed = False

    # Text

    def begin_text(self) -> None:
        self._check_open()
        if self._in_text:
            raise RuntimeError("Nested begin_text() is not allowed")
        self._emit([], OP_BEGIN_TEXT)
        self._in_text = True

    def end_text(self) -> None:
        self._check_open()
        if not self._in_text:
            raise RuntimeError("end_text() called without begin_text()")
        self._emit([], OP_END_TEXT)
        self._in_text = False

    def set_font(self, base_font: str, size: float) -> None:
        """Select a standard Type1 font, registering it on first use."""
        self._check_open()
        resource_name = self._font_names.get(base_font)
        if resource_name is None:
            resource_name = self._unique_name(FONT_NAME_PREFIX)
            self._pending_fonts[resource_name] = Dictionary({
                KEY_TYPE: Name(VAL_FONT),
                KEY_SUBTYPE: Name(VAL_TYPE1),
                KEY_BASE_FONT: Name('/' + base_font),
                KEY_ENCODING: Name(VAL_WIN_ANSI_ENCODING),
            })
            self._font_names[base_font] = resource_name
            logger.debug(f"Registered font {base_font} as {resource_name}")
        self._emit([Name(resource_name), size], OP_SET_FONT)

    def move_to(self, x: float, y: float) -> None:
        """Start a new text line at offset (x, y)."""
        self._check_in_text('move_to')
        self._emit([x, y], OP_MOVE_TEXT)

    def show_text(self, text: str) -> None:
        self._check_in_text('show_text')
        try:
            encoded = text.encode(TEXT_ENCODING)
        except UnicodeEncodeError as e:
            raise UnsupportedCharacterError(
                f"Character {text[e.start:e.end]!r} cannot be drawn with the page font"
            )
        self._emit([String(encoded)], OP_SHOW_TEXT)

    # Color and paths

    def set_fill_color(self, red: int, green: int, blue: int) -> None:
        self._check_open()
        self._emit(list(rgb_to_fill_components((red, green, blue))), OP_SET_RGB_COLOR_FILL)

    def add_rect(self, x: float, y: float, width: float, height: float) -> None:
        self._check_open()
        self._emit([x, y, width, height], OP_RECTANGLE)

    def fill(self) -> None:
        self._check_open()
        self._emit([], OP_FILL)

    # Images

    def draw_image(
        self,
        xobject: Stream,
        x: float,
        y: float,
        width: Optional[float] = None,
        height: Optional[float] = None
    ) -> None:
        """
        Draw an image XObject with its lower-left corner at (x, y).

        Without both width and height the image is drawn at its pixel size.
        """
        self._check_open()
        if self._in_text:
            raise RuntimeError("Images cannot be drawn inside a text object")

        if width is None or height is None:
            width, height = intrinsic_size(xobject)

        resource_name = self._unique_name(IMAGE_NAME_PREFIX)
        self._pending_xobjects[resource_name] = xobject

        self._emit([], OP_SAVE_STATE)
        self._emit([width, 0, 0, height, x, y], OP_CTM)
        self._emit([Name(resource_name)], OP_DO_XOBJECT)
        self._emit([], OP_RESTORE_STATE)

    # Lifecycle

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def operation_count(self) -> int:
        return len(self._operations)

    def close(self) -> None:
        """
        Commit buffered operators and resources to the page.

        Safe to call more than once; later calls do nothing.
        """
        if self._closed:
            return
        if self._in_text:
            raise RuntimeError("Cannot close content stream inside a text object")
        self._closed = True

        if not self._operations:
            logger.debug("Content stream closed without operators, page left unchanged")
            return

        self._commit_resources()

        content = unparse_content_stream(self._operations)
        page_obj = self.page.obj
        if KEY_CONTENTS in page_obj:
            if self.isolate_existing_content:
                self.page.contents_add(self.pdf.make_stream(b'q\n'), prepend=True)
                content = b'Q\n' + content
            self.page.contents_add(self.pdf.make_stream(content))
        else:
            page_obj.Contents = self.pdf.make_stream(content)

        logger.debug(
            f"Committed {len(self._operations)} operators, "
            f"{len(self._pending_fonts)} font(s), {len(self._pending_xobjects)} image(s)"
        )

    def discard(self) -> None:
        """Drop everything buffered; the page stays as it was."""
        if self._closed:
            return
        logger.debug(f"Discarding {len(self._operations)} buffered operators")
        self._operations.clear()
        self._pending_fonts.clear()
        self._pending_xobjects.clear()
        self._in_text = False
        self._closed = True

    # Internals

    def _emit(self, operands: list, operator: bytes) -> None:
        self._operations.append((operands, Operator(operator.decode('ascii'))))

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Content stream is already closed")

    def _check_in_text(self, method: str) -> None:
        self._check_open()
        if not self._in_text:
            raise RuntimeError(f"{method}() requires begin_text()")

    def _collect_resource_names(self) -> Set[str]:
        """Names already used by the page's font and XObject resources."""
        names: Set[str] = set()
        page_obj = self.page.obj
        if KEY_RESOURCES not in page_obj:
            return names
        resources = page_obj[KEY_RESOURCES]
        for key in (KEY_FONT, KEY_XOBJECT):
            if key in resources:
                names.update(str(name) for name in resources[key].keys())
        return names

    def _unique_name(self, prefix: str) -> str:
        index = 1
        while True:
            candidate = f"/{prefix}{index}"
            if (candidate not in self._reserved_names
                    and candidate not in self._pending_fonts
                    and candidate not in self._pending_xobjects):
                return candidate
            index += 1

    def _commit_resources(self) -> None:
        page_obj = self.page.obj
        if KEY_RESOURCES not in page_obj:
            page_obj[KEY_RESOURCES] = Dictionary()
        resources = page_obj[KEY_RESOURCES]

        fonts = {
            resource_name: self.pdf.make_indirect(font_dict)
            for resource_name, font_dict in self._pending_fonts.items()
        }
        for key, pending in ((KEY_FONT, fonts), (KEY_XOBJECT, self._pending_xobjects)):
            if not pending:
                continue
            if key not in resources:
                resources[key] = Dictionary()
            category = resources[key]
            for resource_name, resource in pending.items():
                category[resource_name] = resource
