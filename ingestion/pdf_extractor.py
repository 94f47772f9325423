"""
PDF text extraction utilities
"""

import io
from pypdf import PdfReader


PDF_ERROR_MESSAGE = (
    "Error reading PDF. The file may be corrupted, password-protected, or using a format "
    "that's difficult to parse. Please try a different PDF format or enter information manually."
)


class PDFExtractor:
    """Extract text from PDF files"""

    @staticmethod
    def extract_text(pdf_bytes: bytes) -> str:
        """
        Extract text from PDF bytes, one line per page

        Never raises: any failure, on any page, yields PDF_ERROR_MESSAGE instead.

        Args:
            pdf_bytes: PDF file as bytes

        Returns:
            Extracted text content or the error message
        """
        try:
            if not pdf_bytes:
                raise ValueError("Cannot read an empty file")

            reader = PdfReader(io.BytesIO(pdf_bytes))

            lines = []
            for page in reader.pages:
                page_text = page.extract_text() or ""
                fragments = [fragment.strip() for fragment in page_text.splitlines() if fragment.strip()]
                lines.append(" ".join(fragments) + "\n")

            full_text = "".join(lines)
            print(f"📄 PDF text extracted from {len(lines)} page(s) (first 200 chars): {full_text[:200]}")
            return full_text
        except Exception as e:
            print(f"❌ Error parsing PDF: {str(e)}")
            return PDF_ERROR_MESSAGE

    @staticmethod
    def is_extraction_error(text: str) -> bool:
        """Check whether extract_text returned the error message"""
        return (text or "").startswith("Error reading PDF")

    @staticmethod
    def extract_text_from_file(file_path: str) -> str:
        """
        Extract text from PDF file path

        Args:
            file_path: Path to PDF file

        Returns:
            Extracted text content
        """
        with open(file_path, 'rb') as f:
            pdf_bytes = f.read()
        return PDFExtractor.extract_text(pdf_bytes)
