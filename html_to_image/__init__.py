"""
HTML to Image Service
=====================

An HTTP service converting HTML documents into images by delegating to the
external ``wkhtmltoimage`` command-line tool.

This package provides:
- FastAPI REST endpoint for HTML to image conversion
- Translation of JSON render configuration into wkhtmltoimage arguments
- Async subprocess invocation with a hard deadline
- Rate limiting, compression, CORS and ETag middleware
"""

__version__ = "1.0.0"
__author__ = "HTML to Image Team"
