# Common language: Environment/ops probe that surfaces library versions and which upstreams are configured.
# Key values are never echoed, only whether they are present.

from fastapi import APIRouter, Depends
from ..core.settings import Settings, get_settings
import sys, importlib

router = APIRouter(tags=["health"])

def _ver(modname: str) -> str:
    try:
        m = importlib.import_module(modname)
        return getattr(m, "__version__", "unknown")
    except Exception:
        return "not-installed"

@router.get("/healthz")
def healthz(cfg: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "python": sys.version.split()[0],
        "versions": {
            "fastapi": _ver("fastapi"),
            "uvicorn": _ver("uvicorn"),
            "pydantic_settings": _ver("pydantic_settings"),
            "PIL": _ver("PIL"),
            "httpx": _ver("httpx"),
            "google.genai": _ver("google.genai"),
        },
        "config": {
            "gemini_model": cfg.gemini_model,
            "output_size": cfg.output_size,
            "jpeg_quality": cfg.jpeg_quality,
            "max_file_size": cfg.max_file_size,
            "image_styling": cfg.enable_image_styling,
        },
        "env_keys_present": {
            "GEMINI_API_KEY": bool(cfg.gemini_api_key),
            "STABILITY_API_KEY": bool(cfg.stability_api_key),
        },
    }
