"""
Image Generator
===============

wkhtmltoimage-based image generation from HTML content.
Spawns one renderer process per conversion, streams the HTML to its standard
input and collects the image from its standard output under a hard deadline.
"""

from typing import Optional, List, Tuple, Any
import asyncio
import contextlib

from html_to_image.config.logging import get_logger
from html_to_image.config.settings import get_settings, Settings
from html_to_image.core.rendering.arguments import build_arguments
from html_to_image.models.schemas import ImageConfig

logger = get_logger(__name__)

# Read HTML from stdin, write the image to stdout
STDIN_STDOUT_ARGUMENTS = ("-", "-")

# Flags whose value is withheld from logs
SENSITIVE_FLAGS = frozenset({"--cookie"})


def redact_arguments(arguments: List[str]) -> List[str]:
    """Copy of ``arguments`` with the values of sensitive flags masked."""
    redacted = list(arguments)
    for i, argument in enumerate(arguments[:-1]):
        if argument in SENSITIVE_FLAGS:
            redacted[i + 1] = "***"
    return redacted


class ImageGenerationError(Exception):
    """Exception raised when image generation fails."""

    pass


class ConversionTimeoutError(ImageGenerationError):
    """Exception raised when the renderer does not finish before the deadline."""

    pass


class ExternalToolError(ImageGenerationError):
    """Exception raised when the renderer cannot be started or exits with an error."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class WkhtmltoimageGenerator:
    """Subprocess-based image generator around the wkhtmltoimage executable."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(generator="wkhtmltoimage")  # structlog.BoundLoggerBase

    def build_command(self, arguments: List[str]) -> List[str]:
        """Full command line for a conversion."""
        return [self.settings.wkhtmltoimage_path, *arguments, *STDIN_STDOUT_ARGUMENTS]

    async def generate_image(self, html_content: str, arguments: List[str]) -> bytes:
        """
        Generate an image from HTML content.

        Args:
            html_content: HTML content to render
            arguments: wkhtmltoimage arguments built from the render configuration

        Returns:
            Image bytes written by the renderer

        Raises:
            ConversionTimeoutError: If the renderer exceeds the render timeout
            ExternalToolError: If the renderer cannot be started or fails
        """
        command = self.build_command(arguments)
        timeout = self.settings.render_timeout

        self.logger.info(
            "Generating image from HTML",
            html_length=len(html_content),
            arguments=redact_arguments(arguments),
        )

        try:
            returncode, stdout, stderr = await asyncio.wait_for(
                self._run(command, html_content.encode("utf-8")), timeout=timeout
            )
        except asyncio.TimeoutError:
            self.logger.error("Image generation timed out", timeout=timeout)
            raise ConversionTimeoutError(f"image generation timed out after {timeout:g}s")
        except OSError as e:
            self.logger.error(
                "Failed to start renderer", executable=command[0], error=str(e)
            )
            raise ExternalToolError(f"failed to start {command[0]}: {e}") from e

        if returncode != 0:
            error_output = stderr.decode("utf-8", errors="replace").strip()
            message = f"exit status {returncode}"
            if error_output:
                message = f"{message}: {error_output}"

            self.logger.error(
                "Renderer exited with an error",
                returncode=returncode,
                stderr=error_output,
            )
            raise ExternalToolError(message, returncode=returncode, stderr=error_output)

        self.logger.info("Image generation completed", file_size=len(stdout))
        return stdout

    async def _run(self, command: List[str], stdin_data: bytes) -> Tuple[int, bytes, bytes]:
        """Run the renderer to completion, killing it if the run is cancelled."""
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        try:
            # communicate() feeds stdin while draining both output pipes
            stdout, stderr = await process.communicate(stdin_data)
        finally:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
                self.logger.warning("Renderer process killed", pid=process.pid)

        return process.returncode, stdout, stderr


async def generate_image_from_html(
    html_content: str, config: ImageConfig, settings: Optional[Settings] = None
) -> bytes:
    """
    Convenience function to convert HTML to an image.

    Args:
        html_content: HTML content to render
        config: Render configuration
        settings: Settings to use instead of the global instance

    Returns:
        Image bytes
    """
    arguments = build_arguments(config)
    generator = WkhtmltoimageGenerator(settings)
    return await generator.generate_image(html_content, arguments)
