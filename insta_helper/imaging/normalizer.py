"""
Purpose:
- Turn any uploaded photo into the square JPEG we post: upright, center-cropped, fixed size.
- Pure function of (bytes, size, quality); no disk or network access.

Notes:
- Orientation comes from the EXIF tag, so phone photos are cropped the way they are shown.
- Odd remainders bias the crop toward the top-left (floor division).
"""

from __future__ import annotations
from dataclasses import dataclass
from io import BytesIO
from typing import Tuple
import base64
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 1080
DEFAULT_QUALITY = 90

class DecodeError(ValueError):
    """Input bytes are not a decodable raster image."""

@dataclass(frozen=True)
class NormalizedImage:
    data: bytes
    width: int
    height: int
    mime_type: str = "image/jpeg"

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"

def center_square_box(width: int, height: int) -> Tuple[int, int, int, int]:
    """
    (left, top, right, bottom) of the largest centered square.
    """
    size = min(width, height)
    left = (width - size) // 2
    top = (height - size) // 2
    return left, top, left + size, top + size

def decode_image(data: bytes) -> Image.Image:
    """
    Decode bytes into an upright RGB image (first frame for animations).
    """
    if not data:
        raise DecodeError("empty image payload")
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"cannot decode image: {e}") from e
    img = ImageOps.exif_transpose(img)
    return img.convert("RGB")

def encode_jpeg(img: Image.Image, quality: int = DEFAULT_QUALITY) -> bytes:
    out = BytesIO()
    img.save(out, format="JPEG", quality=quality)
    return out.getvalue()

def square(img: Image.Image, size: int) -> Image.Image:
    cropped = img.crop(center_square_box(*img.size))
    if cropped.size != (size, size):
        cropped = cropped.resize((size, size), Image.LANCZOS)
    return cropped

def normalize(data: bytes, size: int = DEFAULT_SIZE, quality: int = DEFAULT_QUALITY) -> NormalizedImage:
    """
    Decode, auto-rotate, center-crop to a square, resize to size x size, re-encode as JPEG.
    Raises DecodeError if `data` is not an image.
    """
    img = decode_image(data)
    w, h = img.size
    out = square(img, size)
    logger.debug("normalized %dx%d -> %dx%d (q=%d)", w, h, size, size, quality)
    return NormalizedImage(data=encode_jpeg(out, quality), width=size, height=size)
