"""
FastAPI REST Endpoints
======================

REST API endpoints for HTTP access to HTML to image conversion.

Endpoints:
- POST /v1/html-to-image: Convert an HTML document to an image
- GET /health: Health check endpoint
"""
