"""
Purpose:
- One request = normalize the photo, optionally restyle it, then caption it.
- Only an undecodable photo fails the request; captioning always yields text.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from ..caption.generator import CaptionGenerator, get_generator
from ..caption.options import CaptionRequestOptions, ImageStyle
from ..core.settings import settings
from ..imaging.normalizer import (
    DecodeError,
    NormalizedImage,
    decode_image,
    encode_jpeg,
    normalize,
    square,
)
from ..imaging.styler import StabilityStyler, get_styler

logger = logging.getLogger(__name__)

class ProcessingError(RuntimeError):
    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.details = details

@dataclass(frozen=True)
class ProcessingResult:
    processed_image: str    # data URI
    generated_text: str
    hashtags: str
    success: bool = True

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "processedImage": self.processed_image,
            "generatedText": self.generated_text,
            "hashtags": self.hashtags,
        }

class PhotoProcessor:
    def __init__(
        self,
        generator: CaptionGenerator,
        output_size: int = 1080,
        quality: int = 90,
        styler: Optional[StabilityStyler] = None,
        styling_size: int = 1024,
    ):
        self.generator = generator
        self.output_size = output_size
        self.quality = quality
        self.styler = styler
        self.styling_size = styling_size

    def _styled(self, image_bytes: bytes, style: ImageStyle) -> Optional[NormalizedImage]:
        """
        Crop to the styling size, restyle, then normalize the result; None on any miss.
        """
        pre = encode_jpeg(square(decode_image(image_bytes), self.styling_size), self.quality)
        logger.info("restyling photo as %s", style.value)
        out = self.styler.restyle(pre, style.value)
        if not out:
            logger.info("style transfer gave no image; using plain crop")
            return None
        try:
            return normalize(out, self.output_size, self.quality)
        except DecodeError as e:
            logger.error("style transfer output unreadable (%s); using plain crop", e)
            return None

    def process(self, image_bytes: bytes, opts: CaptionRequestOptions) -> ProcessingResult:
        """
        Raises ProcessingError when the upload is not a decodable image.
        """
        try:
            image = None
            if self.styler is not None and opts.image_style is not ImageStyle.NONE:
                image = self._styled(image_bytes, opts.image_style)
            if image is None:
                image = normalize(image_bytes, self.output_size, self.quality)
        except DecodeError as e:
            logger.error("image decode failed (%d bytes): %s", len(image_bytes), e)
            raise ProcessingError("Image could not be processed.", details=str(e)) from e

        caption = self.generator.generate(image, opts)
        return ProcessingResult(
            processed_image=image.data_uri,
            generated_text=caption.text,
            hashtags=caption.hashtags,
        )

def get_processor() -> PhotoProcessor:
    return PhotoProcessor(
        generator=get_generator(),
        output_size=settings.output_size,
        quality=settings.jpeg_quality,
        styler=get_styler(),
        styling_size=settings.styling_size,
    )
