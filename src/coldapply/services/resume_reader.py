"""
Resume text extraction.

Supports:
  - PDF files (.pdf) via pdfplumber, page-by-page text joined with blank lines
  - Plain text files (.txt), read directly

The text feeds both skill extraction and the discovery prompt, so an
unreadable resume is an error for the caller, never an empty string.
"""
from __future__ import annotations

import logging
from pathlib import Path

import pdfplumber

logger = logging.getLogger(__name__)


def read_resume(path: Path) -> str:
    """
    Extract text from a resume file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the extension is unsupported or no text could be extracted.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Resume file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".pdf":
        text = _read_pdf(path)
    elif suffix == ".txt":
        text = path.read_text(encoding="utf-8", errors="replace").strip()
    else:
        raise ValueError(
            f"Unsupported resume format: '{suffix}'. Use a .pdf or .txt file."
        )

    if not text:
        raise ValueError(f"No text could be extracted from {path}")

    logger.info("Resume parsed: %d characters extracted", len(text))
    return text


def _read_pdf(path: Path) -> str:
    pages: list[str] = []
    with pdfplumber.open(path) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                pages.append(text.strip())

    return "\n\n".join(pages).strip()
