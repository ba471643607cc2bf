"""
Document text extraction for uploaded resumes (PDF via PyMuPDF, DOCX via python-docx).
"""
import asyncio
import io
import logging

import fitz  # PyMuPDF
from docx import Document

from ..exceptions import ParseFailure, UnsupportedFormat

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SUPPORTED_MEDIA_TYPES = (PDF_MEDIA_TYPE, DOCX_MEDIA_TYPE)


def ensure_supported(media_type: str) -> None:
    """Raise UnsupportedFormat unless media_type is PDF or DOCX."""
    if media_type not in SUPPORTED_MEDIA_TYPES:
        raise UnsupportedFormat(media_type)


def pdf_to_text(pdf_bytes: bytes) -> str:
    """
    Extract the text of every page, in page order.

    Encrypted documents and anything PyMuPDF cannot open raise ParseFailure.
    """
    try:
        pdf_document = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise ParseFailure(f"Could not open PDF: {e}", media_type=PDF_MEDIA_TYPE, cause=e) from e

    try:
        if pdf_document.needs_pass:
            raise ParseFailure("PDF is encrypted", media_type=PDF_MEDIA_TYPE)

        pages = []
        for page_num in range(len(pdf_document)):
            pages.append(pdf_document[page_num].get_text())
        return "".join(pages)
    except ParseFailure:
        raise
    except Exception as e:
        raise ParseFailure(f"Could not read PDF text: {e}", media_type=PDF_MEDIA_TYPE, cause=e) from e
    finally:
        pdf_document.close()


def docx_to_text(docx_bytes: bytes) -> str:
    """Raw paragraph text, one paragraph per line; formatting and images are dropped."""
    try:
        document = Document(io.BytesIO(docx_bytes))
    except Exception as e:
        raise ParseFailure(f"Could not open DOCX: {e}", media_type=DOCX_MEDIA_TYPE, cause=e) from e
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_text(payload: bytes, media_type: str) -> str:
    ensure_supported(media_type)
    if media_type == PDF_MEDIA_TYPE:
        return pdf_to_text(payload)
    return docx_to_text(payload)


async def extract_text_with_timeout(payload: bytes, media_type: str, timeout: float) -> str:
    """
    Run extraction in a worker thread, bounded by `timeout` seconds.

    A timeout is reported as ParseFailure; the worker thread is left to finish
    on its own since parser calls cannot be interrupted.
    """
    ensure_supported(media_type)
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(extract_text, payload, media_type),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.warning(f"Text extraction timed out after {timeout}s ({media_type})")
        raise ParseFailure(
            f"Text extraction timed out after {timeout}s", media_type=media_type, cause=e
        ) from e
    except ParseFailure:
        raise
    except Exception as e:
        raise ParseFailure(f"Text extraction failed: {e}", media_type=media_type, cause=e) from e
