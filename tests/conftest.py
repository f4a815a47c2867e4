"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides test settings, stand-in renderers and API clients.
"""

from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from html_to_image.api.main import create_app
from html_to_image.config.settings import Settings
from html_to_image.models.schemas import ImageConfig

from tests.utils.helpers import (
    ARGS_RENDERER,
    ECHO_RENDERER,
    FAILING_RENDERER,
    hanging_renderer,
    write_renderer,
)


def make_settings(**overrides) -> Settings:
    """Settings for tests, independent of the environment."""
    values = {
        "environment": "testing",
        "debug": True,
        "log_level": "DEBUG",
        "rate_limit_enabled": False,
        "render_timeout": 5.0,
        "request_timeout": 5.0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def renderers_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "bin"
    directory.mkdir()
    return directory


@pytest.fixture
def echo_renderer(renderers_dir: Path) -> Path:
    """Renderer writing its input back."""
    return write_renderer(renderers_dir, "echo-renderer", ECHO_RENDERER)


@pytest.fixture
def args_renderer(renderers_dir: Path) -> Path:
    """Renderer writing its arguments, one per line."""
    return write_renderer(renderers_dir, "args-renderer", ARGS_RENDERER)


@pytest.fixture
def failing_renderer(renderers_dir: Path) -> Path:
    """Renderer failing with an error message."""
    return write_renderer(renderers_dir, "failing-renderer", FAILING_RENDERER)


@pytest.fixture
def pid_file(tmp_path: Path) -> Path:
    return tmp_path / "renderer.pid"


@pytest.fixture
def hanging_renderer_path(renderers_dir: Path, pid_file: Path) -> Path:
    """Renderer that never finishes."""
    return write_renderer(renderers_dir, "hanging-renderer", hanging_renderer(pid_file))


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Build test settings with overrides."""
    return make_settings


@pytest.fixture
def client_factory() -> Generator[Callable[..., TestClient], None, None]:
    """Create started test clients for apps built from settings overrides."""
    clients = []

    def factory(**overrides) -> TestClient:
        client = TestClient(create_app(make_settings(**overrides)))
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(client_factory: Callable[..., TestClient], echo_renderer: Path) -> TestClient:
    """Test client backed by the echo renderer."""
    return client_factory(wkhtmltoimage_path=str(echo_renderer))


@pytest.fixture
def sample_html() -> str:
    return "<html><body><p>hi</p></body></html>"


@pytest.fixture
def full_config() -> ImageConfig:
    """Configuration with every field set."""
    return ImageConfig.model_validate(
        {
            "format": "jpg",
            "width": 1024,
            "height": 768,
            "disableSmartWidth": True,
            "encoding": "utf-8",
            "crop": {"x": 1, "y": 2, "w": 3, "h": 4},
            "quality": 90,
            "transparent": True,
            "cookies": [{"key": "session", "value": "abc 123"}, {"key": "lang", "value": "en"}],
        }
    )
