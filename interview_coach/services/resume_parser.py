"""
CV text extraction for PDF/DOCX/TXT uploads.

Only the raw text is needed: the interviewer and coach prompts quote it
verbatim, and the candidate name is looked up by the model afterwards.
"""
import re
from io import BytesIO

import docx
from PyPDF2 import PdfReader

from interview_coach.utils.logger import get_logger

logger = get_logger("ResumeParser")


def extract_text(file_bytes: bytes, filename: str) -> str:
    fn = (filename or "").lower()
    if fn.endswith('.pdf'):
        try:
            reader = PdfReader(BytesIO(file_bytes))
            return "\n".join([page.extract_text() or "" for page in reader.pages])
        except Exception as exc:
            raise ValueError(f"Failed to read PDF: {exc}") from exc

    # python-docx supports .docx (not legacy .doc)
    elif fn.endswith('.docx'):
        try:
            doc = docx.Document(BytesIO(file_bytes))
            return "\n".join(paragraph.text for paragraph in doc.paragraphs)
        except Exception as exc:
            raise ValueError(f"Failed to read DOCX: {exc}") from exc

    elif fn.endswith('.doc'):
        raise ValueError("Unsupported file type: .doc (please upload .docx)")
    else:
        return file_bytes.decode("utf-8", errors="ignore")


def read_cv(file_bytes: bytes, filename: str, max_bytes: int) -> str:
    """
    Extract and normalise CV text. Raises ValueError when the upload is too
    large, unreadable, or yields no text.
    """
    if len(file_bytes) > max_bytes:
        raise ValueError(f"File too large ({len(file_bytes)} bytes, limit {max_bytes})")
    text = extract_text(file_bytes, filename)
    text = (text or "").replace("\x00", "")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text).strip()
    if not text:
        raise ValueError(
            "No readable text could be extracted from the file. "
            "If this is a scanned/image PDF, please upload a text-based PDF or a DOCX."
        )
    logger.info(f"Extracted {len(text)} characters from {filename}")
    return text
