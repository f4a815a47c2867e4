"""
Rendering Module
===============

HTML to image conversion through the external wkhtmltoimage tool.

Components:
- arguments: Convert a render configuration into wkhtmltoimage arguments
- image_generator: Run wkhtmltoimage as a subprocess and collect the image
"""
