"""
Global settings for Smart Research Assistant.
"""

# Page
PAGE_TITLE = "Smart Assistant for Research"
PAGE_ICON = "📄"
PAGE_SUBTITLE = "Upload a document (PDF or TXT) to get insights, summaries, and challenge your comprehension."

# Ingestion
MIME_TEXT = "text/plain"
MIME_PDF = "application/pdf"
ACCEPTED_MIME_TYPES = (MIME_TEXT, MIME_PDF)
ACCEPTED_EXTENSIONS = {".txt": MIME_TEXT, ".pdf": MIME_PDF}
UNSUPPORTED_TYPE_MESSAGE = "Please upload a PDF or TXT file."

# Summary
SUMMARY_WORD_LIMIT = 100
SUMMARY_TRUNCATION_MARKER = "..."

# Simulated document processing delay (seconds)
PROCESSING_DELAY_S = 1.5

# API server
API_HOST = "127.0.0.1"
API_PORT = 8800
