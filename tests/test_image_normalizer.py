"""Tests for image normalization."""

import base64
import io

import pytest
from PIL import Image

from food_capture.domain.errors import EncodeError
from food_capture.services.images import normalize_image, target_size
from tests.conftest import make_image_bytes


def test_large_image_is_clamped_preserving_aspect() -> None:
    source = make_image_bytes(width=2048, height=1536)

    image = normalize_image(source, max_dimension=1024, quality=0.7)

    assert (image.width, image.height) == (1024, 768)
    assert image.mime_type == "image/jpeg"
    with Image.open(io.BytesIO(image.data)) as decoded:
        assert decoded.format == "JPEG"
        assert decoded.size == (1024, 768)


def test_small_image_is_not_upscaled() -> None:
    image = normalize_image(make_image_bytes(width=300, height=200))

    assert (image.width, image.height) == (300, 200)


def test_portrait_clamps_height() -> None:
    assert target_size(1000, 3000, 1024) == (341, 1024)


def test_normalization_is_deterministic() -> None:
    source = make_image_bytes(width=1600, height=900)

    first = normalize_image(source)
    second = normalize_image(source)

    assert first.base64 == second.base64


def test_normalization_is_idempotent_on_dimensions() -> None:
    once = normalize_image(make_image_bytes(width=1600, height=900))

    twice = normalize_image(once.data)

    assert (twice.width, twice.height) == (once.width, once.height)


def test_data_url_and_raw_bytes_take_the_same_path() -> None:
    source = make_image_bytes(width=800, height=600)
    data_url = "data:image/png;base64," + base64.b64encode(source).decode()

    assert normalize_image(data_url).data == normalize_image(source).data


def test_transparency_is_flattened() -> None:
    image = normalize_image(make_image_bytes(mode="RGBA", fmt="PNG"))

    with Image.open(io.BytesIO(image.data)) as decoded:
        assert decoded.mode == "RGB"
    assert image.data_url.startswith("data:image/jpeg;base64,")


def test_undecodable_input_raises_encode_error() -> None:
    with pytest.raises(EncodeError):
        normalize_image(b"not an image")
    with pytest.raises(EncodeError):
        normalize_image("data:image/png;base64,@@@")


def test_invalid_parameters_are_rejected() -> None:
    with pytest.raises(ValueError, match="max_dimension"):
        normalize_image(make_image_bytes(), max_dimension=0)
    with pytest.raises(ValueError, match="quality"):
        normalize_image(make_image_bytes(), quality=1.5)


def test_oversized_image_is_an_encode_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(EncodeError, match="decode"):
        normalize_image(make_image_bytes(width=64, height=48))
