from __future__ import annotations
from pathlib import Path
from typing import BinaryIO, List, Optional, Union
import io
import re
from pypdf import PdfReader
from contractintel.utils.exception import ExtractionFailedError, NotFoundError, raise_if_cancelled
from contractintel.utils.logger import logger
from contractintel.utils.types import ExtractedDocument, PageText

HORIZONTAL_SPACE_RE = re.compile(r"[ \t]{2,}")
PARAGRAPH_BREAK_RE = re.compile(r"\n{3,}")

PdfSource = Union[BinaryIO, bytes, bytearray, memoryview]


def normalize_text(text: str) -> str:
    if not text or not text.strip():
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\x00", " ")
    text = HORIZONTAL_SPACE_RE.sub(" ", text)
    text = PARAGRAPH_BREAK_RE.sub("\n\n", text)
    return text.strip()


def _is_usable_stream(stream) -> bool:
    if stream is None:
        return False
    try:
        return bool(stream.readable()) and bool(stream.seekable())
    except (AttributeError, ValueError):  # closed file objects raise ValueError
        return False


def extract_text_from_stream(
    stream: Optional[PdfSource],
    normalize: bool = True,
    cancel_event=None,
) -> ExtractedDocument:
    """Extract full text plus per-page text from an open PDF stream or raw bytes.

    Strategy:
      1. Reject None / unreadable / non-seekable input with an empty document (malformed upload).
      2. Open with pypdf; a document that cannot be parsed at all raises ExtractionFailedError.
      3. Extract page by page; a failing page contributes "" and extraction continues.
      4. Join pages with newlines and normalize (skipped when normalize=False).

    `cancel_event` (threading.Event) is checked before each page is started.
    """
    if isinstance(stream, (bytes, bytearray, memoryview)):
        stream = io.BytesIO(bytes(stream))
    if not _is_usable_stream(stream):
        logger.warning("Invalid PDF stream provided; returning empty document")
        return ExtractedDocument()

    try:
        reader = PdfReader(stream)
        total = len(reader.pages)
    except Exception as e:
        raise ExtractionFailedError(f"Failed to open or read PDF document: {e}") from e

    pages: List[PageText] = []
    for idx in range(total):
        page_no = idx + 1
        raise_if_cancelled(cancel_event, f"before page {page_no}")
        txt = ""
        try:
            txt = reader.pages[idx].extract_text() or ""
        except Exception as e:
            logger.warning("Failed to extract text from page %d: %s", page_no, e)
            txt = ""
        pages.append(PageText(page_number=page_no, text=normalize_text(txt) if normalize else txt))

    combined = "\n".join(p.text for p in pages)
    return ExtractedDocument(
        full_text=normalize_text(combined) if normalize else combined,
        pages=tuple(pages),
    )


def extract_text_from_path(path: Union[str, Path], cancel_event=None) -> ExtractedDocument:
    pdf_path = Path(path)
    if not pdf_path.is_file():
        raise NotFoundError(f"PDF file not found: {pdf_path}")
    try:
        fh = pdf_path.open("rb")
    except OSError as e:
        raise ExtractionFailedError(f"Could not open {pdf_path}: {e}") from e
    with fh:
        return extract_text_from_stream(fh, normalize=True, cancel_event=cancel_event)
