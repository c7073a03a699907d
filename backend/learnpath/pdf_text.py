from __future__ import annotations
import logging
import re
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from .errors import ExtractionFailure

logger = logging.getLogger(__name__)

# Below this many characters the text is not worth summarizing
MIN_TEXT_CHARS = 50

_WHITESPACE = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES = re.compile(r"\n{3,}")


def clean_text(text: str) -> str:
	text = "".join(ch if ch.isprintable() or ch == "\n" else " " for ch in text)
	text = _WHITESPACE.sub(" ", text)
	return _BLANK_LINES.sub("\n\n", text).strip()


def extract_text(pdf_path: Path) -> str:
	"""Text of every page of ``pdf_path``.

	Raises ``ExtractionFailure`` when the file is missing, is not a readable
	PDF, or holds less than ``MIN_TEXT_CHARS`` characters of text (scanned
	images, for instance).
	"""
	if not pdf_path.is_file():
		raise ExtractionFailure(f"File not found at {pdf_path}")
	if pdf_path.suffix.lower() != ".pdf":
		raise ExtractionFailure(f"File is not a PDF: {pdf_path.name}")
	if pdf_path.stat().st_size == 0:
		raise ExtractionFailure("PDF file is empty")
	try:
		reader = PdfReader(str(pdf_path))
		pages: list[str] = []
		for page in reader.pages:
			text = page.extract_text()
			if text:
				pages.append(text)
	except (PyPdfError, ValueError, KeyError, OSError) as exc:
		raise ExtractionFailure(f"Could not read PDF: {exc}") from exc
	text = clean_text("\n\n".join(pages))
	if len(text) < MIN_TEXT_CHARS:
		raise ExtractionFailure(f"Only {len(text)} characters of text found")
	logger.debug("Extracted %s characters from %s", len(text), pdf_path.name)
	return text
