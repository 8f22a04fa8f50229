"""Shared fixtures: sample images and PDFs generated on the fly."""

import pikepdf
import pytest
from PIL import Image


EXISTING_PAGE_CONTENT = b"0 0 1 rg 0 0 50 50 re f\n"


@pytest.fixture
def jpeg_path(tmp_path):
    """40x20 RGB JPEG on disk."""
    path = tmp_path / "sample.jpg"
    Image.new("RGB", (40, 20), (0, 128, 255)).save(path, format="JPEG")
    return str(path)


@pytest.fixture
def png_path(tmp_path):
    """PNG file, used to check that non-jpg image actions are skipped."""
    path = tmp_path / "sample.png"
    Image.new("RGB", (10, 10), (255, 0, 0)).save(path, format="PNG")
    return str(path)


@pytest.fixture
def new_pdf():
    """Empty in-memory document."""
    pdf = pikepdf.Pdf.new()
    yield pdf
    pdf.close()


@pytest.fixture
def existing_pdf():
    """One letter-size page that already carries a blue square."""
    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    pdf.pages[0].obj.Contents = pdf.make_stream(EXISTING_PAGE_CONTENT)
    pdf.pages[0].obj.Resources = pikepdf.Dictionary()
    yield pdf
    pdf.close()


@pytest.fixture
def existing_pdf_path(tmp_path, existing_pdf):
    """The one-page document saved to disk."""
    path = tmp_path / "existing.pdf"
    existing_pdf.save(path)
    return str(path)


@pytest.fixture
def red_rectangle_batch():
    """Letter-size page with one red rectangle."""
    return {
        "mediaBox": {"x": 0, "y": 0, "width": 612, "height": 792},
        "actions": [
            {"type": "rectangle", "x": 10, "y": 10, "width": 100, "height": 50, "color": "#FF0000"},
        ],
    }
