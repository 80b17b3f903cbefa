"""Thin wrapper around the OpenAI SDK for the hosted models Campaign Studio uses."""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import openai
from openai import OpenAI

from campaignstudio.config import StudioConfig
from campaignstudio.models import GeneratedImage, ImagePayload, VideoJob

logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    """Raised when a hosted API call fails; carries the upstream message."""


@contextmanager
def _upstream(default: str) -> Iterator[None]:
    try:
        yield
    except openai.OpenAIError as e:
        message = getattr(e, "message", None) or str(e) or default
        raise UpstreamError(message) from e


def _error_message(error: Any) -> str | None:
    if error is None:
        return None
    if isinstance(error, dict):
        return error.get("message")
    return getattr(error, "message", None) or str(error)


class StudioClient:
    """Hosted image, video and text operations behind one injected SDK instance."""

    def __init__(self, config: StudioConfig, sdk: OpenAI | None = None) -> None:
        self.config = config
        if sdk is None:
            sdk = OpenAI(api_key=config.api_key, base_url=config.base_url)
        self.sdk = sdk

    def edit_images(
        self,
        images: list[ImagePayload],
        prompt: str,
        size: str | None = None,
        fidelity: str = "high",
        output_format: str = "png",
    ) -> GeneratedImage:
        """Edit or blend one or more images with the image model."""
        with _upstream("Image editing failed"):
            resp = self.sdk.images.edit(
                model=self.config.models.image,
                image=[(img.name, img.data, img.mime) for img in images],
                prompt=prompt,
                size=size or self.config.image_size,
                input_fidelity=fidelity,
                output_format=output_format,
            )

        data = getattr(resp, "data", None) or []
        b64 = getattr(data[0], "b64_json", None) if data else None
        if not b64:
            raise UpstreamError("No image returned from the API")
        return GeneratedImage(base64=b64, mime=f"image/{output_format}")

    def generate_response(self, messages: list[dict], model: str | None = None) -> Any:
        with _upstream("Response generation failed"):
            return self.sdk.responses.create(
                model=model or self.config.models.text,
                input=messages,
            )

    def analyze_image(self, image_data_url: str, prompt: str, model: str | None = None) -> Any:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": prompt},
                    {"type": "input_image", "image_url": image_data_url},
                ],
            }
        ]
        with _upstream("Image analysis failed"):
            return self.sdk.responses.create(
                model=model or self.config.models.vision,
                input=messages,
            )

    def create_video(
        self,
        prompt: str,
        reference_image: bytes,
        seconds: int = 4,
        size: str | None = None,
    ) -> VideoJob:
        with _upstream("Video generation failed"):
            video = self.sdk.videos.create(
                model=self.config.models.video,
                prompt=prompt,
                size=size or self.config.video_size,
                seconds=str(seconds),
                input_reference=("reference.jpg", reference_image, "image/jpeg"),
            )
        return VideoJob(id=video.id, status=video.status)

    def get_video_status(self, video_id: str) -> VideoJob:
        with _upstream("Unable to fetch status"):
            video = self.sdk.videos.retrieve(video_id)
        return VideoJob(
            id=video.id,
            status=video.status,
            error=_error_message(getattr(video, "error", None)),
        )

    def get_video_content(self, video_id: str) -> bytes:
        with _upstream("Unable to fetch video"):
            content = self.sdk.videos.download_content(video_id)
            return content.read()

    def remix_video(self, video_id: str, prompt: str) -> VideoJob:
        with _upstream("Remix failed"):
            video = self.sdk.videos.remix(video_id, prompt=prompt)
        return VideoJob(id=video.id, status=video.status)
