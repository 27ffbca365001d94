"""Code artifact extraction from agent replies."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

FENCE = "```"


def extract_fenced_code(text: str) -> Optional[str]:
    """Return the text between the first and last ``` fence, or None.

    A single fence yields everything after it.
    """
    if not text or FENCE not in text:
        return None
    start = text.index(FENCE) + len(FENCE)
    end = text.rindex(FENCE)
    if end < start:
        end = len(text)
    return text[start:end]


def write_code_artifact(text: str, code_path: Optional[str]) -> Optional[Path]:
    """Persist the fenced code of a reply to code_path. Returns the path written."""
    if not code_path:
        return None
    code = extract_fenced_code(text)
    if code is None:
        return None
    path = Path(code_path)
    if not path.is_absolute():
        path = Path.cwd() / path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(code, encoding="utf-8")
    return path
