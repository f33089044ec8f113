"""Tests for document ingestion, extractors and summary derivation."""

from __future__ import annotations

import zlib

import pytest

from conftest import make_words
from services.document_store import (
    REFERENCE_CORPUS,
    DeclaredType,
    DocumentStore,
    IngestError,
    PlaceholderPDFExtractor,
    UnsupportedType,
    declared_type_for,
    ingest,
    summarize,
)


def _make_minimal_pdf(page_text: str = "Hello PDF") -> bytes:
    """Build a minimal valid single-page PDF with *page_text* as content stream."""
    content = f"BT /F1 12 Tf 72 720 Td ({page_text}) Tj ET".encode()
    content_compressed = zlib.compress(content)

    objects: list[bytes] = []

    def obj(n: int, body: str) -> bytes:
        return f"{n} 0 obj\n{body}\nendobj\n".encode()

    objects.append(obj(1, "<< /Type /Catalog /Pages 2 0 R >>"))
    objects.append(obj(2, "<< /Type /Pages /Kids [3 0 R] /Count 1 >>"))
    objects.append(obj(3, "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                        "/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>"))
    stream_body = f"<< /Filter /FlateDecode /Length {len(content_compressed)} >>\nstream\n".encode()
    stream_body += content_compressed + b"\nendstream"
    objects.append(b"4 0 obj\n" + stream_body + b"\nendobj\n")
    objects.append(obj(5, "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>"))

    header = b"%PDF-1.4\n"
    body = b"".join(objects)
    xref_offset = len(header) + len(body)

    xref = b"xref\n0 6\n0000000000 65535 f \n"
    offset = len(header)
    for o in objects:
        xref += f"{offset:010d} 00000 n \n".encode()
        offset += len(o)

    trailer = (
        b"trailer\n<< /Size 6 /Root 1 0 R >>\n"
        b"startxref\n" + str(xref_offset).encode() + b"\n%%EOF\n"
    )
    return header + body + xref + trailer


# ──────────────────────────────────────────────────────────────
# summarize
# ──────────────────────────────────────────────────────────────

class TestSummarize:
    @pytest.mark.parametrize("count", [0, 1, 99, 100, 101, 250])
    def test_word_count_is_bounded(self, count):
        summary = summarize(make_words(count))
        assert len(summary.split()) == min(count, 100)

    def test_marker_only_when_truncated(self):
        assert not summarize(make_words(100)).endswith("...")
        assert summarize(make_words(101)).endswith("...")

    def test_250_words_keeps_first_100(self):
        summary = summarize(make_words(250))
        assert summary == make_words(100) + "..."

    def test_short_document_is_whitespace_normalized(self):
        assert summarize("  alpha\n\nbeta\tgamma  ") == "alpha beta gamma"

    def test_empty_text(self):
        assert summarize("") == ""


# ──────────────────────────────────────────────────────────────
# declared_type_for
# ──────────────────────────────────────────────────────────────

class TestDeclaredTypeFor:
    def test_text_plain(self):
        assert declared_type_for("text/plain") is DeclaredType.TEXT

    def test_text_plain_with_charset(self):
        assert declared_type_for("text/plain; charset=utf-8") is DeclaredType.TEXT

    def test_pdf(self):
        assert declared_type_for("application/pdf") is DeclaredType.PDF

    def test_image_is_other(self):
        assert declared_type_for("image/png") is DeclaredType.OTHER

    def test_extension_fallback_when_no_mime(self):
        assert declared_type_for("", "report.PDF") is DeclaredType.PDF
        assert declared_type_for("", "notes.txt") is DeclaredType.TEXT
        assert declared_type_for("", "slides.docx") is DeclaredType.OTHER

    def test_explicit_mime_wins_over_extension(self):
        assert declared_type_for("image/png", "notes.txt") is DeclaredType.OTHER


# ──────────────────────────────────────────────────────────────
# ingest
# ──────────────────────────────────────────────────────────────

class TestIngest:
    def test_text_is_used_verbatim(self):
        doc = ingest(b"Hello research world", DeclaredType.TEXT, file_name="a.txt")
        assert doc.raw_text == "Hello research world"
        assert doc.summary == "Hello research world"
        assert doc.is_placeholder is False
        assert doc.file_name == "a.txt"

    def test_invalid_utf8_is_replaced_not_rejected(self):
        doc = ingest(b"caf\xff", DeclaredType.TEXT)
        assert doc.raw_text.startswith("caf")

    def test_pdf_substitutes_reference_corpus(self):
        doc = ingest(b"%PDF-1.4 garbage", DeclaredType.PDF, file_name="paper.pdf")
        assert doc.raw_text == REFERENCE_CORPUS
        assert doc.is_placeholder is True
        assert doc.declared_type is DeclaredType.PDF

    def test_pdf_summary_is_truncated_corpus(self):
        doc = ingest(b"", DeclaredType.PDF)
        assert len(doc.summary.split()) == 100
        assert doc.summary.endswith("...")

    def test_broken_pdf_has_no_page_count(self):
        doc = ingest(b"not a pdf at all", DeclaredType.PDF)
        assert doc.page_count is None

    def test_other_type_raises_unsupported(self):
        with pytest.raises(UnsupportedType):
            ingest(b"png bytes", DeclaredType.OTHER)

    def test_unsupported_is_an_ingest_error_and_value_error(self):
        assert issubclass(UnsupportedType, IngestError)
        assert issubclass(UnsupportedType, ValueError)

    def test_custom_extractor_registry(self):
        class Upper:
            def extract(self, content):
                from services.document_store import Extraction

                return Extraction(text=content.decode().upper())

        doc = ingest(b"shout", DeclaredType.TEXT, extractors={DeclaredType.TEXT: Upper()})
        assert doc.raw_text == "SHOUT"


class TestPlaceholderPDFExtractor:
    def test_page_count_for_parseable_pdf(self):
        pdf_bytes = _make_minimal_pdf("Test content")
        extraction = PlaceholderPDFExtractor().extract(pdf_bytes)
        # pypdf may reject the hand-built PDF; either way the corpus is substituted.
        assert extraction.page_count in (1, None)
        assert extraction.text == REFERENCE_CORPUS

    def test_custom_corpus(self):
        extraction = PlaceholderPDFExtractor(corpus="tiny corpus").extract(b"")
        assert extraction.text == "tiny corpus"
        assert extraction.is_placeholder is True


# ──────────────────────────────────────────────────────────────
# DocumentStore
# ──────────────────────────────────────────────────────────────

class TestDocumentStore:
    def setup_method(self):
        self.store = DocumentStore()

    def test_ingest_upload_sets_active_document(self):
        doc = self.store.ingest_upload(b"first", "text/plain", "one.txt")
        assert self.store.document is doc

    def test_new_upload_replaces_prior_document(self):
        self.store.ingest_upload(b"first", "text/plain")
        second = self.store.ingest_upload(b"second", "text/plain")
        assert self.store.document is second
        assert self.store.document.raw_text == "second"

    def test_unsupported_upload_leaves_document_untouched(self):
        first = self.store.ingest_upload(b"first", "text/plain")
        with pytest.raises(UnsupportedType) as excinfo:
            self.store.ingest_upload(b"\x89PNG", "image/png", "pic.png")
        assert excinfo.value.mime_type == "image/png"
        assert "PDF or TXT" in str(excinfo.value)
        assert self.store.document is first

    def test_clear(self):
        self.store.ingest_upload(b"first", "text/plain")
        self.store.clear()
        assert self.store.document is None
