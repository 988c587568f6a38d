"""Hero image generation through the Imagen REST API."""

from __future__ import annotations

import logging
import re
from typing import Protocol

import httpx

from trygo.config import Settings
from trygo.errors import UpstreamError
from trygo.llm.prompts import render

logger = logging.getLogger(__name__)

HERO_ASPECT_RATIO = "16:9"


class ImageGenerator(Protocol):
    def generate(self, title: str, description: str = "", prompt_hint: str | None = None) -> str:
        """Return an image URL (``https://`` or ``data:``) for the given subject."""
        ...


def build_image_prompt(title: str, description: str = "", prompt_hint: str | None = None) -> str:
    """Hero-framed photographic prompt with no text or logos."""
    scene = prompt_hint or " ".join(part for part in (title, description) if part)
    scene = re.sub(r"\s+", " ", scene).strip()
    return render("image_prompt.j2", scene=scene)


def _extract_base64(data: dict) -> str | None:
    """Pull base64 image bytes out of any of the response shapes the API has used."""
    predictions = data.get("predictions")
    if predictions and isinstance(predictions[0], dict):
        return predictions[0].get("bytesBase64Encoded")

    candidates = data.get("candidates")
    if candidates:
        parts = (candidates[0].get("content") or {}).get("parts") or []
        if parts and parts[0].get("inlineData"):
            return parts[0]["inlineData"].get("data")

    generated = data.get("generatedImages")
    if generated:
        image = generated[0].get("image") or generated[0]
        return image.get("imageBytes") or image.get("imageBase64")

    if data.get("data") and isinstance(data["data"], list):
        return data["data"][0].get("b64_json")
    return data.get("b64_json") or data.get("imageBase64")


class ImagenClient:
    """Calls ``models/{model}:predict`` and returns the image as a data URL."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.gemini_api_key
        self._model = settings.image_model
        self._client = httpx.Client(
            base_url=settings.image_api_base.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=settings.http_timeout,
        )

    def generate(self, title: str, description: str = "", prompt_hint: str | None = None) -> str:
        if not self._api_key:
            raise UpstreamError("image", "GEMINI_API_KEY is not configured")

        payload = {
            "instances": [{"prompt": build_image_prompt(title, description, prompt_hint)}],
            "parameters": {"sampleCount": 1, "aspectRatio": HERO_ASPECT_RATIO},
        }
        try:
            resp = self._client.post(
                f"/models/{self._model}:predict",
                params={"key": self._api_key},
                json=payload,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                "image",
                f"Image API error: {exc.response.status_code} {exc.response.text[:200]}",
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError("image", f"Image API request failed: {exc}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError("image", "Image API returned a non-JSON response") from exc

        image_base64 = _extract_base64(data) if isinstance(data, dict) else None
        if not image_base64:
            raise UpstreamError("image", "Image API returned no image data")

        logger.info("Generated hero image for %r with %s", title, self._model)
        return f"data:image/png;base64,{image_base64}"

    def close(self) -> None:
        self._client.close()
