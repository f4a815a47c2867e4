"""
API Dependencies
================

FastAPI dependencies shared by the route modules.
"""

from fastapi import Request

from html_to_image.config.settings import Settings


def get_current_settings(request: Request) -> Settings:
    """Dependency to get the settings the application was created with."""
    return request.app.state.settings
