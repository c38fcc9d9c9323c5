import io

from PIL import Image

from portfolio.config import settings
from portfolio.services.image_transform import apply_upload_policy


def test_large_image_is_bounded_keeping_aspect_ratio(image_bytes):
    data = image_bytes("PNG", size=(3000, 1500))
    result = apply_upload_policy(data, "image/png")
    img = Image.open(io.BytesIO(result.data))
    assert img.size == (settings.MAX_IMAGE_DIMENSION, settings.MAX_IMAGE_DIMENSION // 2)
    assert result.content_type == "image/png"


def test_small_image_is_never_enlarged(jpeg_bytes):
    result = apply_upload_policy(jpeg_bytes, "image/jpeg")
    img = Image.open(io.BytesIO(result.data))
    assert img.size == (100, 100)
    assert img.format == "JPEG"


def test_webp_keeps_format(image_bytes):
    result = apply_upload_policy(image_bytes("WEBP"), "image/webp")
    assert Image.open(io.BytesIO(result.data)).format == "WEBP"
    assert result.content_type == "image/webp"


def test_strips_exif():
    img = Image.new("RGB", (50, 50), color="blue")
    exif = Image.Exif()
    exif[0x010F] = "PhoneMaker"
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", exif=exif)

    result = apply_upload_policy(buffer.getvalue(), "image/jpeg")
    assert len(Image.open(io.BytesIO(result.data)).getexif()) == 0


def test_undecodable_content_is_uploaded_untouched():
    data = b"\x00\x00\x00\x18ftypheic" + b"\x00" * 64
    result = apply_upload_policy(data, "image/heic")
    assert result.data == data
    assert result.content_type == "image/heic"
