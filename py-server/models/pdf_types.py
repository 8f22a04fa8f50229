"""
Pydantic models for the PDF Page Actions API
Page action requests are decoded once at the boundary, so malformed batches
are rejected before any drawing begins.
"""

from typing import Any, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from utils.colors import parse_hex_color
from utils.validation import (
    ActionValidationError,
    MissingFieldError,
    PageActionError,
)

SUPPORTED_IMAGE_TYPES = ("jpg",)

# Geometry
class Position(BaseModel):
    """Point in PDF user space (origin bottom-left, points)"""
    x: int
    y: int

class MediaBox(Position):
    """Page boundary rectangle; maps to [x, y, x + width, y + height]"""
    width: int
    height: int

    def to_pdf_rect(self) -> List[int]:
        return [self.x, self.y, self.x + self.width, self.y + self.height]

class ColoredAction(BaseModel):
    """Base for actions carrying a '#RRGGBB' fill color"""
    color: str

    @field_validator('color')
    @classmethod
    def _check_color(cls, value: str) -> str:
        parse_hex_color(value)
        return value

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return parse_hex_color(self.color)

# Page actions
class TextAction(ColoredAction):
    """Single line of text drawn in the fixed serif face"""
    type: Literal["text"] = "text"
    value: str
    fontSize: int
    position: Position

class RectangleAction(ColoredAction):
    """Filled, unstroked rectangle"""
    type: Literal["rectangle"] = "rectangle"
    x: int
    y: int
    width: int
    height: int

class ImageAction(BaseModel):
    """Image drawn at (x, y); scaled only when both width and height are given"""
    type: Literal["image"] = "image"
    imageType: str
    imagePath: str
    x: int
    y: int
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def is_supported(self) -> bool:
        return self.imageType in SUPPORTED_IMAGE_TYPES

    @property
    def scaled_size(self) -> Optional[Tuple[int, int]]:
        if self.width is None or self.height is None:
            return None
        return self.width, self.height

class IgnoredAction(BaseModel):
    """
    Action with an unrecognized type tag.

    Kept so batches written for newer clients still apply; the interpreter
    skips it.
    """
    model_config = ConfigDict(extra='allow')
    type: str

PageAction = Union[TextAction, RectangleAction, ImageAction, IgnoredAction]

ACTION_MODELS = {
    "text": TextAction,
    "rectangle": RectangleAction,
    "image": ImageAction,
}

class PageActions(BaseModel):
    """
    Batch of actions for one page.

    Without pageIndex a new page is created and mediaBox is required.
    """
    pageIndex: Optional[int] = None
    mediaBox: Optional[MediaBox] = None
    actions: List[PageAction]

    @property
    def creates_page(self) -> bool:
        return self.pageIndex is None

class DocumentActions(BaseModel):
    """Ordered page batches applied to one document"""
    pages: List[PageActions] = Field(default_factory=list)

# Inspection (read-back) models
class BoundingBox(BaseModel):
    """Bounding box in PDF user space"""
    x: float
    y: float
    width: float
    height: float

class InspectedRect(BoundingBox):
    """Filled rectangle found on a page"""
    fill: Optional[str] = None

class InspectedText(BaseModel):
    """Run of characters sharing baseline, font and color"""
    text: str
    x: float
    y: float
    fontName: Optional[str] = None
    fontSize: Optional[float] = None
    color: Optional[str] = None

class InspectedImage(BoundingBox):
    """Image placement found on a page"""
    name: Optional[str] = None

class PageInspection(BaseModel):
    """Drawn content of a single page"""
    pageIndex: int
    mediaBox: BoundingBox
    rects: List[InspectedRect] = Field(default_factory=list)
    texts: List[InspectedText] = Field(default_factory=list)
    images: List[InspectedImage] = Field(default_factory=list)

# Configuration models
class PageActionConfig(BaseModel):
    """Request-level drawing options"""
    jpeg_quality: int = Field(75, ge=1, le=100, description="JPEG quality used when embedding images")
    isolate_existing_content: bool = Field(True, description="Wrap existing page content in q/Q before appending")

# Boundary decoding

def _translate_validation_error(
    error: ValidationError,
    prefix: Sequence[Union[str, int]] = ()
) -> PageActionError:
    """Map a pydantic ValidationError onto the page action error taxonomy."""
    details = error.errors()

    for detail in details:
        if detail['type'] == 'missing':
            location = tuple(prefix) + tuple(detail['loc'])
            return MissingFieldError(str(detail['loc'][-1]), location)

    for detail in details:
        original = (detail.get('ctx') or {}).get('error')
        if isinstance(original, PageActionError):
            return original

    first = details[0]
    location = '.'.join(str(part) for part in tuple(prefix) + tuple(first['loc']))
    return ActionValidationError(f"Invalid value at {location}: {first['msg']}")

def decode_action(raw: Any, index: int = 0, prefix: Sequence[Union[str, int]] = ()) -> PageAction:
    """
    Decode one raw action map into its typed variant.

    Unknown type tags become IgnoredAction instead of failing.
    """
    location = tuple(prefix) + ('actions', index)
    if not isinstance(raw, Mapping):
        raise ActionValidationError(f"Action at {'.'.join(map(str, location))} must be an object")

    if 'type' not in raw:
        raise MissingFieldError('type', location + ('type',))

    action_type = raw['type']
    model = ACTION_MODELS.get(action_type, IgnoredAction) if isinstance(action_type, str) else IgnoredAction
    try:
        return model.model_validate(dict(raw))
    except ValidationError as e:
        raise _translate_validation_error(e, location) from e

def decode_page_actions(raw: Any, prefix: Sequence[Union[str, int]] = ()) -> PageActions:
    """
    Decode a raw page-action map (e.g. parsed JSON) into PageActions.

    Raises:
        MissingFieldError: A required field is absent
        InvalidColorFormatError: A color is not '#RRGGBB'
        ActionValidationError: Any other structural problem
    """
    if not isinstance(raw, Mapping):
        raise ActionValidationError("Page actions must be an object")

    if 'actions' not in raw:
        raise MissingFieldError('actions', tuple(prefix) + ('actions',))

    raw_actions = raw['actions']
    if not isinstance(raw_actions, list):
        raise ActionValidationError("'actions' must be a list")

    actions = [decode_action(item, index, prefix) for index, item in enumerate(raw_actions)]

    try:
        return PageActions.model_validate({**raw, 'actions': actions})
    except ValidationError as e:
        raise _translate_validation_error(e, prefix) from e

def decode_document_actions(raw: Any) -> DocumentActions:
    """Decode {"pages": [...]} into DocumentActions."""
    if not isinstance(raw, Mapping):
        raise ActionValidationError("Document actions must be an object")

    if 'pages' not in raw:
        raise MissingFieldError('pages')

    raw_pages = raw['pages']
    if not isinstance(raw_pages, list):
        raise ActionValidationError("'pages' must be a list")

    pages = [decode_page_actions(item, ('pages', index)) for index, item in enumerate(raw_pages)]
    return DocumentActions(pages=pages)
