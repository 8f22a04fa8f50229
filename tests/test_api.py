"""HTTP tests for the FastAPI bridge."""

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from extractors.page_inspector import inspect_pdf
import main
from main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def image_root(tmp_path, monkeypatch):
    """Server image directory holding one 40x20 JPEG, with a secret image beside it."""
    root = tmp_path / "images"
    root.mkdir()
    Image.new("RGB", (40, 20), (0, 128, 255)).save(root / "logo.jpg", format="JPEG")
    Image.new("RGB", (8, 8), (0, 0, 0)).save(tmp_path / "secret.jpg", format="JPEG")
    monkeypatch.setattr(main, "IMAGE_ROOT", str(root))
    return root


def _upload(path):
    return {"file": ("existing.pdf", Path(path).read_bytes(), "application/pdf")}


def test_root_lists_features(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "PDF Page Actions API"


def test_health_reports_dependencies(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert set(body["dependencies"]) == {"PIL", "pdfplumber", "pikepdf", "psutil"}


def test_create_pdf_returns_pdf(client, red_rectangle_batch):
    response = client.post("/create-pdf", data={"actions": json.dumps({"pages": [red_rectangle_batch]})})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    pages = inspect_pdf(response.content)
    assert pages[0].rects[0].fill == "#ff0000"


def test_create_pdf_accepts_config(client, red_rectangle_batch):
    response = client.post("/create-pdf", data={
        "actions": json.dumps({"pages": [red_rectangle_batch]}),
        "config": json.dumps({"jpeg_quality": 50}),
    })

    assert response.status_code == 200


def test_create_pdf_rejects_bad_config(client, red_rectangle_batch):
    response = client.post("/create-pdf", data={
        "actions": json.dumps({"pages": [red_rectangle_batch]}),
        "config": json.dumps({"jpeg_quality": 500}),
    })

    assert response.status_code == 400


def test_create_pdf_rejects_malformed_json(client):
    response = client.post("/create-pdf", data={"actions": "{not json"})

    assert response.status_code == 400
    assert "Invalid JSON" in response.json()["detail"]


def test_create_pdf_reports_missing_field(client):
    actions = {"pages": [{
        "mediaBox": {"x": 0, "y": 0, "width": 10, "height": 10},
        "actions": [{"type": "rectangle", "x": 0, "y": 0, "width": 1, "height": 1}],
    }]}

    response = client.post("/create-pdf", data={"actions": json.dumps(actions)})

    assert response.status_code == 400
    assert "'color'" in response.json()["detail"]


def test_create_pdf_reports_invalid_color(client):
    actions = {"pages": [{
        "mediaBox": {"x": 0, "y": 0, "width": 10, "height": 10},
        "actions": [{"type": "rectangle", "x": 0, "y": 0, "width": 1, "height": 1, "color": "red"}],
    }]}

    response = client.post("/create-pdf", data={"actions": json.dumps(actions)})

    assert response.status_code == 400
    assert "#RRGGBB" in response.json()["detail"]


def test_modify_pdf_returns_attachment(client, existing_pdf_path, red_rectangle_batch):
    actions = {"pages": [{**red_rectangle_batch, "pageIndex": 0}]}

    response = client.post("/modify-pdf", files=_upload(existing_pdf_path), data={"actions": json.dumps(actions)})

    assert response.status_code == 200
    assert response.headers["content-disposition"] == "attachment; filename=modified_existing.pdf"
    assert [rect.fill for rect in inspect_pdf(response.content)[0].rects] == ["#0000ff", "#ff0000"]


def test_modify_pdf_unknown_page_is_404(client, existing_pdf_path):
    actions = {"pages": [{"pageIndex": 5, "actions": []}]}

    response = client.post("/modify-pdf", files=_upload(existing_pdf_path), data={"actions": json.dumps(actions)})

    assert response.status_code == 404


def test_modify_pdf_rejects_non_pdf_upload(client):
    response = client.post(
        "/modify-pdf",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"actions": json.dumps({"pages": []})},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Only PDF files are supported"


def test_modify_pdf_missing_image_is_400(client, existing_pdf_path, image_root):
    actions = {"pages": [{"pageIndex": 0, "actions": [
        {"type": "image", "imageType": "jpg", "imagePath": "missing.jpg", "x": 0, "y": 0},
    ]}]}

    response = client.post("/modify-pdf", files=_upload(existing_pdf_path), data={"actions": json.dumps(actions)})

    assert response.status_code == 400


def test_inspect_pdf_endpoint(client, existing_pdf_path):
    response = client.post("/inspect-pdf", files=_upload(existing_pdf_path))

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    assert body[0]["mediaBox"] == {"x": 0, "y": 0, "width": 612, "height": 792}
    assert body[0]["rects"][0]["fill"] == "#0000ff"


def test_processing_timeout_is_bounded(client, existing_pdf_path):
    response = client.post("/inspect-pdf?processing_timeout=5", files=_upload(existing_pdf_path))

    assert response.status_code == 422


def _image_document(image_path):
    return {"pages": [{
        "mediaBox": {"x": 0, "y": 0, "width": 100, "height": 100},
        "actions": [{"type": "image", "imageType": "jpg", "imagePath": image_path, "x": 0, "y": 0}],
    }]}


def test_create_pdf_reads_images_from_image_root(client, image_root):
    response = client.post("/create-pdf", data={"actions": json.dumps(_image_document("logo.jpg"))})

    assert response.status_code == 200
    image = inspect_pdf(response.content)[0].images[0]
    assert (image.width, image.height) == (40, 20)


@pytest.mark.parametrize("image_path", ["../secret.jpg", "sub/../../secret.jpg", "secret"])
def test_create_pdf_rejects_image_outside_root(client, image_root, image_path):
    if image_path == "secret":
        image_path = str(image_root.parent / "secret.jpg")

    response = client.post("/create-pdf", data={"actions": json.dumps(_image_document(image_path))})

    assert response.status_code == 400
    assert "outside the image root" in response.json()["detail"]


def test_request_config_cannot_move_image_root(client, image_root):
    response = client.post("/create-pdf", data={
        "actions": json.dumps(_image_document("../secret.jpg")),
        "config": json.dumps({"image_root": str(image_root.parent)}),
    })

    assert response.status_code == 400
