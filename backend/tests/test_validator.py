from portfolio.config import settings
from portfolio.services.validator import validate_image


def test_valid_png(png_bytes):
    result = validate_image(png_bytes, "image/png")
    assert result.is_valid is True
    assert result.mime_type == "image/png"


def test_valid_jpeg(jpeg_bytes):
    result = validate_image(jpeg_bytes, "image/jpeg")
    assert result.is_valid is True
    assert result.mime_type == "image/jpeg"


def test_accepts_jpg_alias(jpeg_bytes):
    assert validate_image(jpeg_bytes, "image/jpg").is_valid is True


def test_accepts_exactly_max_size(jpeg_bytes):
    data = jpeg_bytes + b"\0" * (settings.MAX_FILE_SIZE - len(jpeg_bytes))
    assert len(data) == settings.MAX_FILE_SIZE
    assert validate_image(data, "image/jpeg").is_valid is True


def test_rejects_oversized_file():
    data = b"x" * (15 * 1024 * 1024)
    result = validate_image(data, "image/png")
    assert result.is_valid is False
    assert "size" in result.error.lower()


def test_rejects_one_byte_over_limit(png_bytes):
    data = png_bytes + b"\0" * (settings.MAX_FILE_SIZE + 1 - len(png_bytes))
    assert validate_image(data, "image/png").is_valid is False


def test_rejects_declared_type_outside_allow_list(png_bytes):
    result = validate_image(png_bytes, "application/pdf")
    assert result.is_valid is False
    assert "invalid file type" in result.error.lower()


def test_rejects_missing_content_type(png_bytes):
    assert validate_image(png_bytes, None).is_valid is False


def test_rejects_disguised_content():
    result = validate_image(b"<html><script>alert(1)</script></html>", "image/png")
    assert result.is_valid is False
    assert result.mime_type not in settings.SNIFFED_IMAGE_TYPES


def test_rejects_empty_file():
    result = validate_image(b"", "image/png")
    assert result.is_valid is False
