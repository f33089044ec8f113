"""
Document ingestion and summary derivation.

PDF uploads are accepted structurally only: pypdf is used to count pages, and
the fixed reference corpus below stands in for the extracted text. Documents
built this way carry ``is_placeholder=True`` so callers can say so.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Protocol

from pypdf import PdfReader

from config import (
    ACCEPTED_EXTENSIONS,
    MIME_PDF,
    MIME_TEXT,
    SUMMARY_TRUNCATION_MARKER,
    SUMMARY_WORD_LIMIT,
    UNSUPPORTED_TYPE_MESSAGE,
)
from utils.text_utils import split_words

LOGGER = logging.getLogger("assistant.documents")

REFERENCE_CORPUS = """
Section 1: Introduction to AI in Healthcare

Artificial Intelligence (AI) is rapidly transforming various sectors, with healthcare being one of the most promising. AI's capabilities in data analysis, pattern recognition, and predictive modeling offer unprecedented opportunities to improve patient outcomes, streamline operations, and reduce costs. The integration of AI technologies, such as machine learning and natural language processing, is leading to significant advancements in diagnostics, personalized medicine, and drug discovery.

Section 2: AI in Diagnostics

One of the most impactful applications of AI in healthcare is in diagnostics. Machine learning algorithms can analyze vast amounts of medical images (X-rays, MRIs, CT scans) with remarkable accuracy, often surpassing human capabilities in identifying subtle anomalies that might indicate early-stage diseases like cancer or retinopathy. For instance, deep learning models trained on millions of medical images can detect cancerous lesions in radiology scans with high sensitivity and specificity. This not only aids in earlier detection but also reduces the workload on radiologists.

Section 3: Personalized Medicine and Drug Discovery

AI plays a crucial role in advancing personalized medicine by analyzing genomic data, patient medical history, and lifestyle factors to tailor treatments to individual patients. This approach promises more effective therapies with fewer side effects. Furthermore, in drug discovery, AI accelerates the identification of potential drug candidates, predicts their efficacy and toxicity, and optimizes molecular structures. This drastically cuts down the time and cost associated with traditional drug development processes, potentially bringing life-saving drugs to market much faster.

Section 4: Ethical Considerations and Future Outlook

Despite the immense potential, the deployment of AI in healthcare raises important ethical questions, including data privacy, algorithmic bias, and accountability. Ensuring the fairness and transparency of AI systems is paramount. Future developments are expected to see AI playing an even more central role, from robotic surgery to proactive health management, emphasizing the need for robust regulatory frameworks and interdisciplinary collaboration.
"""


class DeclaredType(str, Enum):
    TEXT = "text"
    PDF = "pdf"
    OTHER = "other"


class IngestError(ValueError):
    """Raised when an upload cannot become the session document."""


class UnsupportedType(IngestError):
    """Raised for uploads that are neither plain text nor PDF."""

    def __init__(self, mime_type: str = "") -> None:
        super().__init__(UNSUPPORTED_TYPE_MESSAGE)
        self.mime_type = mime_type


@dataclass(frozen=True)
class Document:
    raw_text: str
    summary: str
    file_name: str = ""
    declared_type: DeclaredType = DeclaredType.TEXT
    is_placeholder: bool = False
    page_count: int | None = None


@dataclass(frozen=True)
class Extraction:
    text: str
    is_placeholder: bool = False
    page_count: int | None = None


class Extractor(Protocol):
    def extract(self, content: bytes) -> Extraction: ...


class PlainTextExtractor:
    """Decodes UTF-8 text; undecodable bytes are replaced rather than rejected."""

    def extract(self, content: bytes) -> Extraction:
        return Extraction(text=(content or b"").decode("utf-8", errors="replace"))


class PlaceholderPDFExtractor:
    """
    Accepts a PDF without extracting its text.

    The page count is read with pypdf when the bytes parse; the returned text
    is always ``corpus``.
    """

    def __init__(self, corpus: str = REFERENCE_CORPUS) -> None:
        self.corpus = corpus

    def _count_pages(self, content: bytes) -> int | None:
        if not content:
            return None
        try:
            reader = PdfReader(io.BytesIO(content))
            return len(reader.pages)
        except Exception as e:  # noqa: BLE001
            LOGGER.warning("PDF could not be parsed structurally (%s); using placeholder corpus", e)
            return None

    def extract(self, content: bytes) -> Extraction:
        return Extraction(text=self.corpus, is_placeholder=True, page_count=self._count_pages(content))


DEFAULT_EXTRACTORS: dict[DeclaredType, Extractor] = {
    DeclaredType.TEXT: PlainTextExtractor(),
    DeclaredType.PDF: PlaceholderPDFExtractor(),
}


def declared_type_for(mime_type: str = "", file_name: str = "") -> DeclaredType:
    """
    Map a MIME-like type (or, when empty, a file extension) to a DeclaredType.

    >>> declared_type_for("application/pdf")
    <DeclaredType.PDF: 'pdf'>
    """
    mime = (mime_type or "").split(";", 1)[0].strip().lower()
    if not mime and file_name:
        mime = ACCEPTED_EXTENSIONS.get(PurePath(file_name).suffix.lower(), "")
    if mime == MIME_TEXT:
        return DeclaredType.TEXT
    if mime == MIME_PDF:
        return DeclaredType.PDF
    return DeclaredType.OTHER


def summarize(raw_text: str) -> str:
    """Return the first SUMMARY_WORD_LIMIT words, plus the marker if any were cut."""
    words = split_words(raw_text)
    summary = " ".join(words[:SUMMARY_WORD_LIMIT])
    if len(words) > SUMMARY_WORD_LIMIT:
        summary += SUMMARY_TRUNCATION_MARKER
    return summary


def ingest(
    content: bytes,
    declared_type: DeclaredType,
    file_name: str = "",
    extractors: dict[DeclaredType, Extractor] | None = None,
) -> Document:
    """
    Build a Document from an upload.

    Raises:
        UnsupportedType: If *declared_type* has no extractor.
    """
    registry = DEFAULT_EXTRACTORS if extractors is None else extractors
    extractor = registry.get(declared_type)
    if extractor is None:
        raise UnsupportedType(str(getattr(declared_type, "value", declared_type)))
    extraction = extractor.extract(content)
    LOGGER.info(
        "Ingested %s (%s, %d bytes, placeholder=%s)",
        file_name or "<unnamed>",
        declared_type.value,
        len(content or b""),
        extraction.is_placeholder,
    )
    return Document(
        raw_text=extraction.text,
        summary=summarize(extraction.text),
        file_name=file_name,
        declared_type=declared_type,
        is_placeholder=extraction.is_placeholder,
        page_count=extraction.page_count,
    )


class DocumentStore:
    """Holds the active session document."""

    def __init__(self, extractors: dict[DeclaredType, Extractor] | None = None) -> None:
        self._extractors = dict(DEFAULT_EXTRACTORS if extractors is None else extractors)
        self.document: Document | None = None

    def ingest(self, content: bytes, declared_type: DeclaredType, file_name: str = "") -> Document:
        document = ingest(content, declared_type, file_name=file_name, extractors=self._extractors)
        self.document = document
        return document

    def ingest_upload(self, content: bytes, mime_type: str = "", file_name: str = "") -> Document:
        """Resolve the declared type from *mime_type*/*file_name*, then ingest."""
        declared = declared_type_for(mime_type, file_name)
        if declared is DeclaredType.OTHER:
            raise UnsupportedType(mime_type)
        return self.ingest(content, declared, file_name=file_name)

    def clear(self) -> None:
        self.document = None
