#backend/app/core/pdf_parser.py
from typing import Union
from pathlib import Path
from io import BytesIO
from PyPDF2 import PdfReader

PDF_MAGIC = b"%PDF-"


def looks_like_pdf(data: bytes) -> bool:
    """Cheap header check; the content type sent by browsers is advisory."""
    return bool(data) and data[:1024].lstrip().startswith(PDF_MAGIC)


class PDFParser:
    """Plain text extraction, used to give the reviewer model the resume content."""

    def extract_text(self, file: Union[Path, bytes]) -> str:
        if isinstance(file, Path):
            with open(file, "rb") as f:
                return self._extract_all(PdfReader(f))
        if isinstance(file, bytes):
            return self._extract_all(PdfReader(BytesIO(file)))
        raise ValueError("Unsupported file type for PDFParser.")

    def _extract_all(self, reader: PdfReader) -> str:
        parts = []
        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                parts.append(page_text)
        return "\n".join(parts).strip()
