"""Unit tests for LibreAnvil converters."""

import io

import pytest
from PIL import Image

from libreanvil.utils.converters import (
    ImageInputError,
    bytes_to_data_url,
    data_url_to_bytes,
    image_input_from_bytes,
    parse_year,
    read_image_size,
)


def _png_bytes(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestParseYear:
    """Test parse_year."""

    @pytest.mark.parametrize("label,expected", [
        ("1000 BE", 1000),
        ("500", 500),
        ("-44 BC", -44),
        ("  12th age", 12),
        ("Present", 0),
        ("", 0),
        (None, 0),
    ])
    def test_labels(self, label, expected):
        """Test leading-integer parsing of year labels."""
        assert parse_year(label) == expected


class TestDataUrls:
    """Test data URL helpers."""

    def test_decode_base64(self):
        """Test a base64 data URL decodes to its bytes."""
        url = bytes_to_data_url(b"\x89PNG-bytes", "image/png")
        assert url.startswith("data:image/png;base64,")
        assert data_url_to_bytes(url) == b"\x89PNG-bytes"

    def test_decode_plain(self):
        """Test a non-base64 data URL."""
        assert data_url_to_bytes("data:text/plain,hello") == b"hello"

    def test_rejects_other_strings(self):
        """Test anything but a data URL is rejected."""
        with pytest.raises(ValueError):
            data_url_to_bytes("https://example.com/map.png")


class TestImageInput:
    """Test uploaded image validation."""

    def test_read_image_size(self):
        """Test the natural size is read from the image."""
        assert read_image_size(_png_bytes(40, 20)) == (40, 20)

    def test_read_image_size_rejects_garbage(self):
        """Test undecodable content raises ImageInputError."""
        with pytest.raises(ImageInputError):
            read_image_size(b"definitely not an image")

    def test_rejects_pixel_bomb(self, mocker):
        """Test a small file that decodes to too many pixels raises ImageInputError."""
        mocker.patch.object(Image, "MAX_IMAGE_PIXELS", 100)
        with pytest.raises(ImageInputError, match="too many pixels"):
            image_input_from_bytes(_png_bytes(40, 40), "image/png")

    def test_image_input_from_bytes(self):
        """Test a valid upload becomes an ImageInput."""
        content = _png_bytes(64, 32)
        image = image_input_from_bytes(content, "image/png")
        assert (image.width, image.height) == (64, 32)
        assert data_url_to_bytes(image.data_url) == content

    def test_rejects_non_image_type(self):
        """Test non-image MIME types are rejected."""
        with pytest.raises(ImageInputError, match="image file"):
            image_input_from_bytes(_png_bytes(4, 4), "application/pdf")

    def test_rejects_oversize(self):
        """Test files over the size limit are rejected."""
        content = _png_bytes(8, 8)
        with pytest.raises(ImageInputError, match="less than"):
            image_input_from_bytes(content, "image/png", max_bytes=len(content) - 1)

    def test_default_limit_from_config(self, mocker):
        """Test the limit defaults to the configured maximum."""
        config = mocker.Mock()
        config.basemap.max_image_bytes = 10
        mocker.patch("libreanvil.utils.converters.get_config", return_value=config)
        with pytest.raises(ImageInputError):
            image_input_from_bytes(_png_bytes(8, 8), "image/png")

    def test_error_is_value_error(self):
        """Test ImageInputError can be caught as ValueError."""
        with pytest.raises(ValueError):
            image_input_from_bytes(b"", "text/plain")
