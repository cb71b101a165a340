"""
Services package for the document processing application.

Contains:
- quality: Text quality gate
- extraction: Direct text -> OCR -> salvage strategy chain
- pdf_service: PDF text layer and page rendering (pypdf, pdf2image)
- ocr_service: Tesseract OCR
- ai: AI structuring with local fallback
- storage: Blob and job stores (SQLAlchemy)
- job_manager: Job lifecycle and worker pool
"""
