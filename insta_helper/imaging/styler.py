"""
Purpose:
- Optional restyling of the square photo through Stability AI image-to-image (SDXL 1.0).
- Returns None whenever there is no usable image; the pipeline then keeps the plain crop.

Notes:
- Requires settings.stability_api_key and settings.enable_image_styling.
- Width/height are not sent: the v1 endpoint keeps the input image size.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
import base64
import binascii
import logging

import httpx

from ..core.settings import settings

logger = logging.getLogger(__name__)

STYLE_PROMPTS: Dict[str, str] = {
    "anime": "anime style, illustration, 2d animation, japanese anime, cartoon",
    "vintage": "vintage photo, retro, film grain, nostalgic, old photograph, sepia",
    "sparkle": "sparkly, glittery, magical, shimmering effects, glamorous, dreamy",
}
DEFAULT_STYLE_PROMPT = "enhance the image"

@dataclass(frozen=True)
class StabilityConfig:
    api_key: Optional[str]
    endpoint: str
    timeout: float = 60.0
    image_strength: float = 0.35
    steps: int = 30
    cfg_scale: float = 7.0

def _form_fields(cfg: StabilityConfig, style: str) -> Dict[str, str]:
    return {
        "text_prompts[0][text]": STYLE_PROMPTS.get(style, DEFAULT_STYLE_PROMPT),
        "text_prompts[0][weight]": "1",
        "init_image_mode": "IMAGE_STRENGTH",
        "image_strength": str(cfg.image_strength),
        "samples": "1",
        "steps": str(cfg.steps),
        "cfg_scale": str(cfg.cfg_scale),
    }

def _extract_image(payload: Any) -> Optional[str]:
    # The API has returned the image under several keys over time
    if not isinstance(payload, dict):
        return None
    artifacts = payload.get("artifacts") or []
    first = artifacts[0] if artifacts and isinstance(artifacts[0], dict) else {}
    return first.get("base64") or first.get("b64") or payload.get("image_base64") or payload.get("image")

class StabilityStyler:
    def __init__(self, cfg: StabilityConfig, client: Optional[httpx.Client] = None):
        self.cfg = cfg
        self._client = client

    def restyle(self, image_bytes: bytes, style: str) -> Optional[bytes]:
        """
        Restyled image bytes, or None if the key is missing or the call yields no image.
        """
        if not self.cfg.api_key:
            logger.warning("STABILITY_API_KEY not set; skipping style transfer")
            return None

        headers = {"Authorization": f"Bearer {self.cfg.api_key}", "Accept": "application/json"}
        files = {"init_image": ("image.jpg", image_bytes, "image/jpeg")}
        try:
            client = self._client or httpx
            r = client.post(
                self.cfg.endpoint,
                headers=headers,
                data=_form_fields(self.cfg, style),
                files=files,
                timeout=self.cfg.timeout,
            )
            if r.status_code >= 400:
                logger.error("stability style=%s failed: %s %s", style, r.status_code, r.text[:500])
                return None
            b64 = _extract_image(r.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error("stability style=%s request error: %r", style, e)
            return None

        if not b64:
            logger.error("stability style=%s returned no image", style)
            return None
        try:
            return base64.b64decode(b64, validate=True)
        except (binascii.Error, ValueError):
            logger.error("stability style=%s returned invalid base64", style)
            return None

def get_styler() -> Optional[StabilityStyler]:
    """
    Styler configured from settings, or None when styling is switched off.
    """
    if not settings.enable_image_styling:
        return None
    return StabilityStyler(StabilityConfig(
        api_key=settings.stability_api_key,
        endpoint=settings.stability_endpoint,
        timeout=settings.stability_timeout,
        image_strength=settings.style_image_strength,
        steps=settings.style_steps,
        cfg_scale=settings.style_cfg_scale,
    ))
