"""
Purpose:
- Ask Gemini for an Instagram caption + hashtags for a normalized photo.
- Never raises to the caller: missing key, exhausted retries, or an unparsable
  answer all degrade to the configured fallback text.

Notes:
- Caption and hashtags are parsed independently, so one missing section only
  replaces that section with its default.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple
import logging
import re
import time

from ..core.settings import settings
from ..imaging.normalizer import NormalizedImage
from .options import CaptionRequestOptions
from .prompt import BODY_MARKER, HASHTAG_MARKER, build_prompt
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

_GENERATOR_SINGLETON = None  # cached instance

# Body runs to the hashtag marker, or to the end when the model dropped that section
_BODY_RE = re.compile(re.escape(BODY_MARKER) + r"\s*(.*?)(?:" + re.escape(HASHTAG_MARKER) + r"|\Z)", re.DOTALL)
_HASHTAG_RE = re.compile(re.escape(HASHTAG_MARKER) + r"\s*(.*)", re.DOTALL)
# A hashtag ends at whitespace, the next "#", or ASCII/Japanese punctuation
_HASHTAG_TOKEN_RE = re.compile(r"#[^\s#,、。.!！?？;；:：]+")

@dataclass(frozen=True)
class GeminiConfig:
    api_key: Optional[str]
    model: str = "gemini-2.5-flash-lite"
    max_output_tokens: int = 500
    temperature: float = 0.7
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    fallback_text: str = "素敵な写真が撮れました！✨"
    fallback_hashtags: str = "#instagram #photo #instagood"

@dataclass(frozen=True)
class CaptionResult:
    text: str
    hashtags: str

def parse_sections(full_text: str, default_text: str, default_hashtags: str) -> Tuple[str, str]:
    """
    Split a model answer into (caption, hashtags) using the prompt's markers.
    """
    full_text = full_text or ""
    body = _BODY_RE.search(full_text)
    tags = _HASHTAG_RE.search(full_text)
    text = body.group(1).strip() if body else ""
    hashtags = tags.group(1).strip() if tags else ""
    return text or default_text, hashtags or default_hashtags

def ensure_keyword_hashtag(hashtags: str, keyword_tag: Optional[str]) -> str:
    """
    Prepend keyword_tag unless a hashtag token already equals it (case-insensitive).
    """
    if not keyword_tag:
        return hashtags
    wanted = keyword_tag.casefold()
    if any(tok.casefold() == wanted for tok in _HASHTAG_TOKEN_RE.findall(hashtags)):
        return hashtags
    return f"{keyword_tag} {hashtags}".strip()

class CaptionGenerator:
    def __init__(self, cfg: GeminiConfig, client: Any = None, sleep: Callable[[float], None] = time.sleep):
        self.cfg = cfg
        self._client = client
        self._sleep = sleep

    @property
    def enabled(self) -> bool:
        return bool(self.cfg.api_key)

    def fallback(self) -> CaptionResult:
        return CaptionResult(text=self.cfg.fallback_text, hashtags=self.cfg.fallback_hashtags)

    def _get_client(self):
        if self._client is None:
            from google import genai
            self._client = genai.Client(api_key=self.cfg.api_key)
        return self._client

    def _request(self, image: NormalizedImage, prompt: str) -> str:
        from google.genai import types

        client = self._get_client()
        config = types.GenerateContentConfig(
            max_output_tokens=self.cfg.max_output_tokens,
            temperature=self.cfg.temperature,
        )
        part = types.Part.from_bytes(data=image.data, mime_type=image.mime_type)
        response = self.cfg.retry.call(
            lambda: client.models.generate_content(
                model=self.cfg.model,
                contents=[prompt, part],
                config=config,
            ),
            sleep=self._sleep,
            describe=f"gemini {self.cfg.model}",
        )
        return response.text or ""

    def generate(self, image: NormalizedImage, opts: CaptionRequestOptions) -> CaptionResult:
        """
        Caption + hashtags for `image`; falls back instead of raising.
        """
        if not self.enabled:
            logger.info("GEMINI_API_KEY not set; returning fallback caption")
            return self.fallback()

        prompt = build_prompt(opts)
        try:
            full_text = self._request(image, prompt)
        except Exception:
            logger.exception("caption generation failed; returning fallback caption")
            return self.fallback()

        logger.debug("gemini answer (%d chars): %r", len(full_text), full_text)
        text, hashtags = parse_sections(full_text, self.cfg.fallback_text, self.cfg.fallback_hashtags)
        if text == self.cfg.fallback_text or hashtags == self.cfg.fallback_hashtags:
            logger.warning("gemini answer missing a section; using defaults for it")
        hashtags = ensure_keyword_hashtag(hashtags, opts.keyword_hashtag)
        return CaptionResult(text=text, hashtags=hashtags)

def get_generator() -> CaptionGenerator:
    """
    Return a cached generator configured from settings.
    """
    global _GENERATOR_SINGLETON
    if _GENERATOR_SINGLETON is not None:
        return _GENERATOR_SINGLETON

    cfg = GeminiConfig(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        max_output_tokens=settings.gemini_max_output_tokens,
        temperature=settings.gemini_temperature,
        retry=RetryPolicy(
            max_attempts=settings.caption_max_attempts,
            base_delay=settings.caption_retry_base_delay,
        ),
        fallback_text=settings.fallback_text,
        fallback_hashtags=settings.fallback_hashtags,
    )
    _GENERATOR_SINGLETON = CaptionGenerator(cfg)
    return _GENERATOR_SINGLETON
