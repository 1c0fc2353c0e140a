"""Async client for image generation and image editing."""

from __future__ import annotations

import base64
import logging
from io import BytesIO

from openai import AsyncOpenAI, OpenAIError

from services.base import CollaboratorError

logger = logging.getLogger(__name__)

EXTRACT_PROMPT = (
    "Extract the {description}. Remove the background and make it pure white "
    "(hex #FFFFFF). Keep the object details sharp."
)

REMOVE_BACKGROUND_PROMPT = """
Expertly isolate the main subject in this image.
The input image may contain a rough cutout or a specific object with some surrounding background.
Your task is to:
1. Identify the primary object or subject.
2. Completely remove ALL background elements, context, shadows, and artifacts.
3. Place the subject on a SOLID PURE WHITE background (hex code #FFFFFF).
4. Ensure the edges of the subject are clean and precise.
5. Do not crop parts of the subject itself.
Return ONLY the image of the isolated subject on white.
""".strip()


class ImageGeneratorClient:
    """Generates and edits images through an OpenAI-compatible images API."""

    def __init__(self, api_key: str, base_url: str | None = None, model: str = "gemini-2.5-flash-image") -> None:
        if not api_key:
            raise RuntimeError("Image API key is not configured.")

        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url.rstrip("/") if base_url else None,
        )

    @staticmethod
    def _as_upload(image: bytes, name: str) -> BytesIO:
        """Wrap PNG bytes as a named file for the edit endpoint."""

        buffer = BytesIO(image)
        buffer.name = f"{name}.png"
        return buffer

    @staticmethod
    def _first_image(result, what: str) -> bytes:
        data = getattr(result, "data", None) or []
        for item in data:
            b64 = getattr(item, "b64_json", None)
            if b64:
                return base64.b64decode(b64)
        raise CollaboratorError(f"No {what} image returned.")

    async def generate(self, prompt: str) -> bytes:
        """Generate an image from a text prompt."""

        try:
            result = await self._client.images.generate(
                model=self._model,
                prompt=prompt,
                response_format="b64_json",
            )
        except OpenAIError as exc:
            logger.error(f"Image generation failed: {exc}")
            raise CollaboratorError(f"Image generation failed: {exc}") from exc
        return self._first_image(result, "generated")

    async def _edit(self, image: bytes, prompt: str, what: str) -> bytes:
        upload = self._as_upload(image, "source")
        try:
            result = await self._client.images.edit(
                model=self._model,
                image=upload,
                prompt=prompt,
                response_format="b64_json",
            )
        except OpenAIError as exc:
            logger.error(f"Image {what} failed: {exc}")
            raise CollaboratorError(f"Image {what} failed: {exc}") from exc
        finally:
            upload.close()
        return self._first_image(result, what)

    async def extract_element(self, image: bytes, description: str) -> bytes:
        """Isolate the described element on white."""

        return await self._edit(image, EXTRACT_PROMPT.format(description=description), "extraction")

    async def remove_background(self, image: bytes) -> bytes:
        """Keep only the main subject, on white."""

        return await self._edit(image, REMOVE_BACKGROUND_PROMPT, "background removal")

    async def close(self) -> None:
        """Close the underlying HTTP session."""

        await self._client.close()
