"""
Test Suite
==========

Test suite matching the html_to_image/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: HTTP API tests through the FastAPI test client
"""
