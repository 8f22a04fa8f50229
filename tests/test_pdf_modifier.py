"""Tests for the create_pdf / modify_pdf / inspect_pdf functional API."""

from pathlib import Path

import pytest

from engine import PageActionOptions
from extractors.page_inspector import inspect_pdf
from extractors.pdf_modifier import create_pdf, modify_pdf
from models.pdf_types import decode_document_actions
from utils.validation import ImageDecodeError, MissingFieldError, PageNotFoundError


def test_create_pdf_with_two_pages(red_rectangle_batch):
    document = decode_document_actions({
        "pages": [
            red_rectangle_batch,
            {"mediaBox": {"x": 0, "y": 0, "width": 300, "height": 200}, "actions": [
                {"type": "text", "value": "Second", "fontSize": 18, "color": "#336699", "position": {"x": 20, "y": 100}},
            ]},
        ]
    })

    pages = inspect_pdf(create_pdf(document))

    assert [page.pageIndex for page in pages] == [0, 1]
    assert (pages[1].mediaBox.width, pages[1].mediaBox.height) == (300, 200)
    assert pages[0].rects[0].fill == "#ff0000"
    assert pages[1].texts[0].text == "Second"
    assert pages[1].texts[0].color == "#336699"


def test_create_pdf_can_draw_on_page_from_earlier_batch(red_rectangle_batch):
    document = decode_document_actions({
        "pages": [
            red_rectangle_batch,
            {"pageIndex": 0, "actions": [
                {"type": "rectangle", "x": 200, "y": 200, "width": 10, "height": 10, "color": "#00FF00"},
            ]},
        ]
    })

    pages = inspect_pdf(create_pdf(document))

    assert len(pages) == 1
    assert [rect.fill for rect in pages[0].rects] == ["#ff0000", "#00ff00"]


def test_create_pdf_needs_media_box():
    document = decode_document_actions({"pages": [{"actions": []}]})

    with pytest.raises(MissingFieldError) as exc_info:
        create_pdf(document)
    assert exc_info.value.field == "mediaBox"


def test_create_pdf_index_beyond_created_pages():
    document = decode_document_actions({"pages": [{"pageIndex": 0, "actions": []}]})

    with pytest.raises(PageNotFoundError):
        create_pdf(document)


def test_modify_pdf_keeps_existing_content(existing_pdf_path, red_rectangle_batch):
    original = Path(existing_pdf_path).read_bytes()
    document = decode_document_actions({"pages": [{**red_rectangle_batch, "pageIndex": 0}]})

    pages = inspect_pdf(modify_pdf(existing_pdf_path, document))

    assert len(pages) == 1
    assert [rect.fill for rect in pages[0].rects] == ["#0000ff", "#ff0000"]
    assert Path(existing_pdf_path).read_bytes() == original


def test_modify_pdf_appends_new_page(existing_pdf_path, red_rectangle_batch):
    document = decode_document_actions({"pages": [red_rectangle_batch]})

    pages = inspect_pdf(modify_pdf(existing_pdf_path, document))

    assert len(pages) == 2
    assert [rect.fill for rect in pages[1].rects] == ["#ff0000"]


def test_modify_pdf_without_batches_returns_input(existing_pdf_path):
    document = decode_document_actions({"pages": []})

    assert modify_pdf(existing_pdf_path, document) == Path(existing_pdf_path).read_bytes()


def test_modify_pdf_bad_index(existing_pdf_path):
    document = decode_document_actions({"pages": [{"pageIndex": 3, "actions": []}]})

    with pytest.raises(PageNotFoundError) as exc_info:
        modify_pdf(existing_pdf_path, document)
    assert exc_info.value.page_index == 3


def test_modify_pdf_failure_in_later_batch(existing_pdf_path, tmp_path):
    document = decode_document_actions({
        "pages": [
            {"pageIndex": 0, "actions": [
                {"type": "rectangle", "x": 0, "y": 0, "width": 1, "height": 1, "color": "#000000"},
            ]},
            {"pageIndex": 0, "actions": [
                {"type": "image", "imageType": "jpg", "imagePath": str(tmp_path / "gone.jpg"), "x": 0, "y": 0},
            ]},
        ]
    })

    with pytest.raises(ImageDecodeError):
        modify_pdf(existing_pdf_path, document)


def test_jpeg_quality_option_changes_image_size(tmp_path):
    from PIL import Image

    noisy_path = tmp_path / "noisy.jpg"
    Image.effect_noise((128, 128), 64).convert("RGB").save(noisy_path, format="JPEG", quality=95)
    document = decode_document_actions({"pages": [{
        "mediaBox": {"x": 0, "y": 0, "width": 200, "height": 200},
        "actions": [{"type": "image", "imageType": "jpg", "imagePath": str(noisy_path), "x": 0, "y": 0}],
    }]})

    low = create_pdf(document, PageActionOptions(jpeg_quality=10))
    high = create_pdf(document, PageActionOptions(jpeg_quality=95))

    assert len(low) < len(high)
