import sys
import unittest
from io import BytesIO
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from docx import Document  # noqa: E402

from app.core.errors import InputValidationError  # noqa: E402
from app.parsing.extract import DocumentTextExtractor  # noqa: E402


class DocumentTextExtractorTests(unittest.TestCase):
    def setUp(self):
        self.extractor = DocumentTextExtractor()

    def test_plain_text(self):
        text = self.extractor.extract("cv.txt", "  Ana Gómez\nPython, SQL  \n".encode("utf-8"))
        self.assertEqual(text, "Ana Gómez\nPython, SQL")

    def test_docx_paragraphs(self):
        document = Document()
        document.add_paragraph("Ana Gómez")
        document.add_paragraph("")
        document.add_paragraph("Analista de datos")
        buffer = BytesIO()
        document.save(buffer)
        text = self.extractor.extract("CV.DOCX", buffer.getvalue())
        self.assertEqual(text, "Ana Gómez\nAnalista de datos")

    def test_unsupported_extension(self):
        with self.assertRaises(InputValidationError) as ctx:
            self.extractor.extract("cv.png", b"\x89PNG")
        self.assertEqual(ctx.exception.code, "unsupported_file")

    def test_corrupt_pdf(self):
        with self.assertRaises(InputValidationError) as ctx:
            self.extractor.extract("cv.pdf", b"not a pdf")
        self.assertEqual(ctx.exception.code, "unreadable_file")


if __name__ == "__main__":
    unittest.main()
