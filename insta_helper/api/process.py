"""
Purpose:
- POST /api/process: photo in, square JPEG + caption + hashtags out.
- Accepts multipart (file field "image" + option fields) or JSON ({"imageBase64": ..., options}).
- Input problems are 400s; an undecodable photo is a 500 with details.
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Tuple
import base64
import binascii
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from ..core.settings import Settings, get_settings
from ..services.pipeline import PhotoProcessor, ProcessingError, get_processor
from .schema import CaptionParams, ErrorOut, ProcessJsonIn, ProcessOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["process"])

class InputError(ValueError):
    """Client-side problem with the upload; reported as 400."""

def _error(status: int, message: str, details: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=status, content=ErrorOut(error=message, details=details).model_dump(exclude_none=True))

def _check_mime(mime: Optional[str], cfg: Settings) -> None:
    if mime and mime.lower() not in cfg.allowed_mime_types:
        raise InputError("Unsupported file type. Only JPG, PNG and GIF images can be uploaded.")

def _too_large(cfg: Settings) -> InputError:
    mb = cfg.max_file_size // (1024 * 1024)
    return InputError(f"File is too large. Please upload an image of {mb}MB or less.")

def _split_data_uri(value: str) -> Tuple[Optional[str], str]:
    # "data:image/png;base64,AAAA" -> ("image/png", "AAAA")
    if value.startswith("data:") and "," in value:
        head, payload = value.split(",", 1)
        return head[5:].split(";", 1)[0] or None, payload
    return None, value

async def _from_multipart(request: Request, cfg: Settings) -> Tuple[bytes, CaptionParams]:
    form = await request.form()
    upload = form.get("image")
    if not isinstance(upload, UploadFile):
        raise InputError("No image file was uploaded.")
    _check_mime(upload.content_type, cfg)
    raw = await upload.read()
    if len(raw) > cfg.max_file_size:
        raise _too_large(cfg)
    fields: Dict[str, Any] = {k: v for k, v in form.items() if isinstance(v, str)}
    return raw, CaptionParams.model_validate(fields)

async def _from_json(request: Request, cfg: Settings) -> Tuple[bytes, CaptionParams]:
    try:
        body = ProcessJsonIn.model_validate(await request.json())
    except ValueError as e:
        raise InputError(f"Invalid JSON body: {e}") from e
    if not body.image_base64:
        raise InputError("No image was provided (imageBase64 is required).")
    uri_mime, payload = _split_data_uri(body.image_base64.strip())
    _check_mime(body.mime_type or uri_mime, cfg)
    if len(payload) > cfg.max_base64_size:
        raise _too_large(cfg)
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError("imageBase64 is not valid base64.") from e
    if len(raw) > cfg.max_file_size:
        raise _too_large(cfg)
    return raw, body

@router.post(
    "/process",
    response_model=ProcessOut,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
async def process(
    request: Request,
    cfg: Settings = Depends(get_settings),
    processor: PhotoProcessor = Depends(get_processor),
):
    """
    Normalize the uploaded photo and generate caption + hashtags for it.
    """
    content_type = request.headers.get("content-type", "").lower()
    try:
        if content_type.startswith("application/json"):
            raw, params = await _from_json(request, cfg)
        else:
            raw, params = await _from_multipart(request, cfg)
    except InputError as e:
        logger.info("rejected upload: %s", e)
        return _error(400, str(e))
    except ValidationError as e:
        logger.info("rejected upload options: %s", e)
        return _error(400, "Invalid request options.", details=str(e))

    try:
        result = await run_in_threadpool(processor.process, raw, params.to_options())
    except ProcessingError as e:
        return _error(500, "A server error occurred.", details=e.details)
    return result.to_response()
