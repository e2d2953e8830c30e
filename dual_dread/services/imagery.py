"""
Scene image service for Dual Dread.

Generates a visualization of the current scene through an
OpenAI-compatible image API. Purely presentational: the coordinator runs
it in the background and ignores its failures.

Configuration via environment variables:
    IMAGE_API_KEY: API key for the image backend (falls back to OPENAI_API_KEY)
    IMAGE_MODEL: Model to use (default: dall-e-3)
    IMAGE_BASE_URL: Custom base URL (default: OpenAI)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from openai import AsyncOpenAI, OpenAIError

from dual_dread.engine.difficulty import get_horror_tier
from dual_dread.engine.models import ImageRequest, SceneImage, ServiceError

logger = logging.getLogger(__name__)


def build_image_prompt(request: ImageRequest) -> str:
    """Build the image prompt for a scene, styled by the turn's horror tier."""
    style = get_horror_tier(request.turn_count).image_style
    return (
        "Generate a detailed, 16:9 visualization for a horror text adventure game.\n"
        f'Scene Description: "{request.scene_description}"\n'
        f"Visual Style Guidance: {style}\n"
        "Focus on key elements mentioned in the description. Do not include any text "
        "overlays. Make it dark and evocative."
    )


@dataclass
class OpenAIImageService:
    """SceneImageService using the OpenAI images endpoint."""

    api_key: str | None = None
    model: str = "dall-e-3"
    base_url: str | None = None
    size: str = "1792x1024"
    timeout: float = 120.0

    _client: AsyncOpenAI | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Initialize from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.getenv("IMAGE_API_KEY") or os.getenv("OPENAI_API_KEY")

        if os.getenv("IMAGE_MODEL"):
            self.model = os.getenv("IMAGE_MODEL", self.model)

        if os.getenv("IMAGE_BASE_URL"):
            self.base_url = os.getenv("IMAGE_BASE_URL")

        if self.api_key:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )

    @property
    def is_available(self) -> bool:
        """Whether the service is configured and ready."""
        return self._client is not None

    async def generate(self, request: ImageRequest) -> SceneImage:
        """
        Generate an image for a scene.

        Raises:
            ServiceError: If the service is unconfigured, the call fails, or
                no image comes back
        """
        if self._client is None:
            raise ServiceError("Image service not configured. Set IMAGE_API_KEY.")

        try:
            response = await self._client.images.generate(
                model=self.model,
                prompt=build_image_prompt(request),
                size=self.size,  # type: ignore[arg-type]
                response_format="b64_json",
                n=1,
            )
        except OpenAIError as e:
            raise ServiceError(f"Image request failed: {e}") from e

        if not response.data:
            raise ServiceError("Image generation returned no media.")

        image = response.data[0]
        if image.b64_json:
            data_uri = f"data:image/png;base64,{image.b64_json}"
        elif image.url:
            data_uri = image.url
        else:
            raise ServiceError("Image generation returned no media.")

        return SceneImage(data_uri=data_uri, scene_description=request.scene_description)
