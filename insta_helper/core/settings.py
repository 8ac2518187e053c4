"""
Purpose:
- Centralized configuration using pydantic-settings.
- Reads from environment variables and optional .env file.
- Frozen after load: credentials and limits are fixed for the process lifetime.
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # API host/port
    host: str = Field(default="0.0.0.0", description="Bind address for FastAPI/Uvicorn")
    port: int = Field(default=3000, description="Port for FastAPI/Uvicorn")
    log_level: str = Field(default="INFO")

    # CORS (the browser app is served from anywhere)
    cors_allow_origins: List[str] = Field(default=["*"], description="Allowed origins for browser apps")

    # ---- Gemini caption generation ----
    gemini_api_key: Optional[str] = None
    gemini_model: str = Field(default="gemini-2.5-flash-lite")
    gemini_max_output_tokens: int = Field(default=500)
    gemini_temperature: float = Field(default=0.7)

    # 3 attempts total, waits of 2s then 4s between them
    caption_max_attempts: int = Field(default=3, ge=1)
    caption_retry_base_delay: float = Field(default=2.0, ge=0.0)

    fallback_text: str = Field(default="素敵な写真が撮れました！✨")
    fallback_hashtags: str = Field(default="#instagram #photo #instagood")

    # ---- Output image ----
    output_size: int = Field(default=1080, ge=1, description="Square edge of the processed image")
    jpeg_quality: int = Field(default=90, ge=1, le=100)

    # ---- Upload limits (enforced by the HTTP layer) ----
    max_file_size: int = Field(default=10 * MIB, ge=1, description="Max raw upload size in bytes")
    allowed_mime_types: List[str] = Field(default=["image/jpeg", "image/png", "image/gif"])

    # ---- Stability AI style transfer (off unless explicitly enabled) ----
    enable_image_styling: bool = Field(default=False)
    stability_api_key: Optional[str] = None
    stability_endpoint: str = Field(
        default="https://api.stability.ai/v1/generation/stable-diffusion-xl-1024-v1-0/image-to-image"
    )
    stability_timeout: float = Field(default=60.0)
    styling_size: int = Field(default=1024)
    style_image_strength: float = Field(default=0.35)   # keeps ~65% of the source image
    style_steps: int = Field(default=30)
    style_cfg_scale: float = Field(default=7.0)

    @property
    def max_base64_size(self) -> int:
        """Length of the base64 text for a max_file_size payload (~14 MiB for 10 MiB)."""
        return -(-self.max_file_size // 3) * 4

settings = Settings()

def get_settings() -> Settings:
    return settings
