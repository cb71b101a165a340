"""
Document Processing Backend Application.

A FastAPI service that extracts text from uploaded PDFs and images
(text layer, OCR, heuristic salvage) and optionally structures it
with AI (OpenAI).
"""

__version__ = "1.0.0"
