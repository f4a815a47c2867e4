"""
Core Business Logic
==================

Core business logic for HTML to image conversion.

Modules:
- rendering: wkhtmltoimage argument building and process invocation
"""
