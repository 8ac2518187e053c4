from io import BytesIO

import pytest
from PIL import Image, ImageDraw

from insta_helper.imaging.normalizer import (
    DecodeError,
    NormalizedImage,
    center_square_box,
    normalize,
)
from conftest import image_bytes, open_bytes


def _is_dark(px):
    return all(c < 70 for c in px[:3])


def _is_white(px):
    return all(c > 190 for c in px[:3])


def _marked_photo(width, height):
    """Blue outside the expected crop, black inside it, white block at the geometric center."""
    img = Image.new("RGB", (width, height), (0, 0, 255))
    draw = ImageDraw.Draw(img)
    size = min(width, height)
    left, top = (width - size) // 2, (height - size) // 2
    draw.rectangle([left, top, left + size - 1, top + size - 1], fill=(0, 0, 0))
    half = max(size // 10, 2)
    cx, cy = width // 2, height // 2
    draw.rectangle([cx - half, cy - half, cx + half, cy + half], fill=(255, 255, 255))
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.mark.parametrize("width,height", [(800, 800), (4000, 3000), (3000, 4000), (4000, 500), (500, 4000), (101, 37)])
def test_output_is_fixed_square_jpeg(width, height):
    out = normalize(image_bytes(width, height, (120, 80, 40)))
    assert (out.width, out.height) == (1080, 1080)
    img = open_bytes(out.data)
    assert img.format == "JPEG"
    assert img.size == (1080, 1080)


@pytest.mark.parametrize("width,height", [(600, 600), (1600, 900), (900, 1600), (4000, 500), (500, 4000), (1001, 700)])
def test_center_marker_stays_centered(width, height):
    img = open_bytes(normalize(_marked_photo(width, height)).data).convert("RGB")
    assert _is_white(img.getpixel((540, 540)))
    # nothing from outside the centered square survives the crop
    for xy in [(4, 540), (1075, 540), (540, 4), (540, 1075), (4, 4), (1075, 1075)]:
        assert _is_dark(img.getpixel(xy)), xy


def test_center_square_box_biases_odd_remainder_top_left():
    assert center_square_box(5, 2) == (1, 0, 3, 2)
    assert center_square_box(2, 7) == (0, 2, 2, 4)
    assert center_square_box(10, 10) == (0, 0, 10, 10)


def test_renormalizing_keeps_size():
    once = normalize(image_bytes(1920, 1080, (10, 200, 10)))
    twice = normalize(once.data)
    assert (twice.width, twice.height) == (1080, 1080)
    assert open_bytes(twice.data).size == (1080, 1080)


def test_exif_orientation_is_applied_before_cropping():
    # stored 300x100: top half red, bottom half blue; orientation 6 = rotate 90 deg clockwise
    img = Image.new("RGB", (300, 100), (0, 0, 255))
    ImageDraw.Draw(img).rectangle([0, 0, 299, 49], fill=(255, 0, 0))
    exif = Image.Exif()
    exif[0x0112] = 6
    buf = BytesIO()
    img.save(buf, format="JPEG", exif=exif, quality=95)

    out = open_bytes(normalize(buf.getvalue()).data).convert("RGB")
    left = out.getpixel((200, 540))
    right = out.getpixel((880, 540))
    assert left[2] > 150 and left[0] < 100     # blue
    assert right[0] > 150 and right[2] < 100   # red


@pytest.mark.parametrize("fmt,mode,color", [("PNG", "RGBA", (10, 20, 30, 128)), ("GIF", "P", 3), ("PNG", "L", 90)])
def test_non_rgb_inputs_are_converted(fmt, mode, color):
    out = normalize(image_bytes(640, 480, color, fmt=fmt, mode=mode))
    img = open_bytes(out.data)
    assert img.mode == "RGB"
    assert img.size == (1080, 1080)


def test_custom_size_and_quality():
    out = normalize(image_bytes(300, 200), size=256, quality=50)
    assert open_bytes(out.data).size == (256, 256)


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_undecodable_input_raises(data):
    with pytest.raises(DecodeError):
        normalize(data)


def test_encodings_are_consistent():
    out = normalize(image_bytes(50, 80))
    assert out.mime_type == "image/jpeg"
    assert out.data_uri == f"data:image/jpeg;base64,{out.base64}"
    assert isinstance(out, NormalizedImage)
