"""
Purpose:
- One place to set up process-wide logging for the API and the pipeline.
"""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Install a single stream handler on the root logger (idempotent across app factories).
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(getattr(h, "_insta_helper", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._insta_helper = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return logging.getLogger("insta_helper")
