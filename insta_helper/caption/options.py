"""
Purpose:
- Caption request options as sent by the web app, plus the lookup tables that turn
  each option into a prompt clause.
- Every table has exactly one default entry; unknown or missing values resolve to it.

Hashtag amount:
- Older clients send a tier (few / normal / many), newer ones an explicit count.
  The integer count is canonical; tiers map through TIER_COUNTS.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar
import re

E = TypeVar("E", bound=Enum)

class TextStyle(str, Enum):
    SERIOUS = "serious"
    HUMOR = "humor"
    SPARKLE = "sparkle"
    PASSIONATE = "passionate"
    CASUAL = "casual"
    ELEGANT = "elegant"

class Language(str, Enum):
    JAPANESE = "japanese"     # source language
    ENGLISH = "english"       # target language
    BILINGUAL = "bilingual"   # Japanese first, then the English translation

class CharacterStyle(str, Enum):
    MASCULINE = "masculine"
    FEMININE = "feminine"
    NEUTRAL = "neutral"

class HashtagAmount(str, Enum):
    FEW = "few"
    NORMAL = "normal"
    MANY = "many"

class ImageStyle(str, Enum):
    NONE = "none"
    ANIME = "anime"
    VINTAGE = "vintage"
    SPARKLE = "sparkle"

DEFAULT_TEXT_STYLE = TextStyle.SERIOUS
DEFAULT_LANGUAGE = Language.JAPANESE
DEFAULT_CHARACTER_STYLE = CharacterStyle.NEUTRAL
DEFAULT_IMAGE_STYLE = ImageStyle.NONE
DEFAULT_HASHTAG_COUNT = 10
MAX_HASHTAG_COUNT = 30   # Instagram rejects posts with more

STYLE_CLAUSES: Dict[TextStyle, str] = {
    TextStyle.SERIOUS: "professional and trustworthy",
    TextStyle.HUMOR: "humorous and friendly",
    TextStyle.SPARKLE: "sparkly, upbeat and fun",
    TextStyle.PASSIONATE: "passionate and energetic",
    TextStyle.CASUAL: "casual and relaxed",
    TextStyle.ELEGANT: "elegant and refined",
}

CHARACTER_CLAUSES: Dict[CharacterStyle, str] = {
    CharacterStyle.MASCULINE: "a masculine, strong voice",
    CharacterStyle.FEMININE: "a feminine, gentle voice",
    CharacterStyle.NEUTRAL: "a gender-neutral, even voice",
}

LANGUAGE_CLAUSES: Dict[Language, str] = {
    Language.JAPANESE: "Write the post in Japanese only.",
    Language.ENGLISH: "Write the post in English only.",
    Language.BILINGUAL: (
        "Write the post in both Japanese and English. "
        "Put the Japanese text first, followed by its English translation."
    ),
}

HASHTAG_LANGUAGE_CLAUSES: Dict[Language, str] = {
    Language.JAPANESE: "Japanese hashtags",
    Language.ENGLISH: "English hashtags",
    Language.BILINGUAL: "a balanced mix of Japanese and English hashtags",
}

TIER_COUNTS: Dict[HashtagAmount, int] = {
    HashtagAmount.FEW: 5,
    HashtagAmount.NORMAL: DEFAULT_HASHTAG_COUNT,
    HashtagAmount.MANY: 15,
}

def _resolve(enum_cls: Type[E], value: Any, default: E) -> E:
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    key = str(value).strip().lower()
    try:
        return enum_cls(key)
    except ValueError:
        return default

def resolve_text_style(value: Any) -> TextStyle:
    return _resolve(TextStyle, value, DEFAULT_TEXT_STYLE)

def resolve_language(value: Any) -> Language:
    return _resolve(Language, value, DEFAULT_LANGUAGE)

def resolve_character_style(value: Any) -> CharacterStyle:
    return _resolve(CharacterStyle, value, DEFAULT_CHARACTER_STYLE)

def resolve_image_style(value: Any) -> ImageStyle:
    return _resolve(ImageStyle, value, DEFAULT_IMAGE_STYLE)

def _as_count(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        n = value
    else:
        text = str(value).strip()
        if not re.fullmatch(r"[+-]?\d+", text):
            return None
        n = int(text)
    if n <= 0:
        return None
    return min(n, MAX_HASHTAG_COUNT)

def resolve_hashtag_count(count: Any = None, amount: Any = None) -> int:
    """
    Explicit positive count wins (capped at 30); then a tier name (or a tier passed
    in the count field); then the default of 10.
    """
    n = _as_count(count)
    if n is not None:
        return n
    for raw in (amount, count):
        if raw is None:
            continue
        try:
            return TIER_COUNTS[HashtagAmount(str(raw).strip().lower())]
        except ValueError:
            continue
    return DEFAULT_HASHTAG_COUNT

def normalize_keyword(value: Any) -> Optional[str]:
    if value is None:
        return None
    kw = str(value).strip().lstrip("#").strip()
    return kw or None

@dataclass(frozen=True)
class CaptionRequestOptions:
    text_style: TextStyle = DEFAULT_TEXT_STYLE
    hashtag_count: int = DEFAULT_HASHTAG_COUNT
    language: Language = DEFAULT_LANGUAGE
    character_style: CharacterStyle = DEFAULT_CHARACTER_STYLE
    required_keyword: Optional[str] = None
    image_style: ImageStyle = DEFAULT_IMAGE_STYLE

    @classmethod
    def from_params(
        cls,
        text_style: Any = None,
        hashtag_count: Any = None,
        hashtag_amount: Any = None,
        language: Any = None,
        character_style: Any = None,
        required_keyword: Any = None,
        image_style: Any = None,
    ) -> "CaptionRequestOptions":
        """
        Build options from loosely-typed request values; never raises.
        """
        return cls(
            text_style=resolve_text_style(text_style),
            hashtag_count=resolve_hashtag_count(hashtag_count, hashtag_amount),
            language=resolve_language(language),
            character_style=resolve_character_style(character_style),
            required_keyword=normalize_keyword(required_keyword),
            image_style=resolve_image_style(image_style),
        )

    @property
    def keyword_hashtag(self) -> Optional[str]:
        if not self.required_keyword:
            return None
        return "#" + re.sub(r"\s+", "", self.required_keyword)
