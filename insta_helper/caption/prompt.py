"""
Purpose:
- Build the single instruction string sent to the vision model with the photo.
- The model must answer in two labeled sections, caption first, hashtags second;
  the generator parses the answer with the same markers.
"""

from __future__ import annotations

from .options import (
    CaptionRequestOptions,
    CHARACTER_CLAUSES,
    HASHTAG_LANGUAGE_CLAUSES,
    LANGUAGE_CLAUSES,
    STYLE_CLAUSES,
)

BODY_MARKER = "[CAPTION]"
HASHTAG_MARKER = "[HASHTAGS]"

def _keyword_clause(opts: CaptionRequestOptions) -> str:
    if not opts.required_keyword:
        return ""
    return (
        f'IMPORTANT: the caption MUST contain the keyword "{opts.required_keyword}" verbatim, '
        "worked naturally into the text. "
        f"The hashtags MUST include {opts.keyword_hashtag}. This is a hard requirement.\n\n"
    )

def build_prompt(opts: CaptionRequestOptions) -> str:
    n = opts.hashtag_count
    return (
        "Look at this image and write an Instagram post for it.\n\n"
        f"{_keyword_clause(opts)}"
        f"Language: {LANGUAGE_CLAUSES[opts.language]}\n"
        f"Tone: {STYLE_CLAUSES[opts.text_style]}.\n"
        f"Persona: write in {CHARACTER_CLAUSES[opts.character_style]}.\n\n"
        "Reply using exactly this format, with nothing before or after it:\n\n"
        f"{BODY_MARKER}\n"
        "(the post text)\n\n"
        f"{HASHTAG_MARKER}\n"
        f"(exactly {n} hashtags, {HASHTAG_LANGUAGE_CLAUSES[opts.language]}, each starting with #, "
        "separated by spaces)\n\n"
        f"The hashtag count is strict and non-negotiable: give {n}, no more and no fewer."
    )
