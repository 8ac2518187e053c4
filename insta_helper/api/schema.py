"""
Purpose:
- Pydantic models for /api/process in/out so the API is self-documenting and stable.
- Field aliases match the camelCase names the web app sends.
"""

from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union

from ..caption.options import CaptionRequestOptions

class CaptionParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    text_style: Optional[str] = Field(None, alias="textStyle")
    hashtag_count: Optional[Union[int, str]] = Field(None, alias="hashtagCount")
    hashtag_amount: Optional[str] = Field(None, alias="hashtagAmount")
    language: Optional[str] = None
    character_style: Optional[str] = Field(None, alias="characterStyle")
    required_keyword: Optional[str] = Field(None, alias="requiredKeyword")
    image_style: Optional[str] = Field(None, alias="imageStyle")

    def to_options(self) -> CaptionRequestOptions:
        return CaptionRequestOptions.from_params(
            text_style=self.text_style,
            hashtag_count=self.hashtag_count,
            hashtag_amount=self.hashtag_amount,
            language=self.language,
            character_style=self.character_style,
            required_keyword=self.required_keyword,
            image_style=self.image_style,
        )

class ProcessJsonIn(CaptionParams):
    # Plain base64 or a full data URI
    image_base64: Optional[str] = Field(None, alias="imageBase64")
    mime_type: Optional[str] = Field(None, alias="mimeType")

class ProcessOut(BaseModel):
    success: bool = True
    processedImage: str
    generatedText: str
    hashtags: str

class ErrorOut(BaseModel):
    error: str
    details: Optional[str] = None
