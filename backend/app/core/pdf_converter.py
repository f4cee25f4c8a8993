#backend/app/core/pdf_converter.py
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

import fitz  # PyMuPDF

from backend.app.core.storage import Blob

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    file: Optional[Blob]
    error: Optional[str] = None


def convert_pdf_to_image(file: Blob, dpi: int = 144) -> ConversionResult:
    """Render the first page of a PDF to PNG. Never raises; failures come back in `error`."""
    try:
        with fitz.open(stream=file.data, filetype="pdf") as doc:
            if doc.page_count == 0:
                return ConversionResult(file=None, error="PDF has no pages")
            pix = doc.load_page(0).get_pixmap(dpi=dpi)
            png = pix.tobytes("png")
    except Exception as e:
        logger.warning("PDF conversion failed for %s: %s", file.name, e)
        return ConversionResult(file=None, error=f"Failed to convert PDF: {e}")

    name = f"{Path(file.name).stem or 'resume'}.png"
    return ConversionResult(file=Blob(name=name, data=png, content_type="image/png"))
