"""Video generation, status, download and remix."""

import io
import logging

from PIL import Image, ImageOps

from campaignstudio.client import StudioClient
from campaignstudio.models import VideoJob
from campaignstudio.polling import wait_for_completion
from campaignstudio.prompts import build_video_prompt

logger = logging.getLogger(__name__)


def prepare_reference_image(data: bytes, size: tuple[int, int]) -> bytes:
    """Cover-crop the reference image to the video frame size as JPEG."""
    with Image.open(io.BytesIO(data)) as img:
        fitted = ImageOps.fit(img.convert("RGB"), size, method=Image.Resampling.LANCZOS)
    buf = io.BytesIO()
    fitted.save(buf, format="JPEG", quality=90)
    return buf.getvalue()


def generate_video(
    client: StudioClient, script: str, image_data: bytes, seconds: int
) -> VideoJob:
    """Queue a video job from a script and a reference image."""
    logger.info("[video] generate start seconds=%s script_length=%d", seconds, len(script))
    reference = prepare_reference_image(image_data, client.config.video_dimensions)
    job = client.create_video(build_video_prompt(script), reference, seconds=seconds)
    logger.info("[video] queued id=%s status=%s", job.id, job.status)
    return job


def get_status(client: StudioClient, video_id: str) -> VideoJob:
    job = client.get_video_status(video_id)
    logger.info("[video] status id=%s status=%s", video_id, job.status)
    return job


def get_content(client: StudioClient, video_id: str) -> bytes:
    data = client.get_video_content(video_id)
    logger.info("[video] content id=%s bytes=%d", video_id, len(data))
    return data


def remix_video(client: StudioClient, video_id: str, prompt: str) -> VideoJob:
    logger.info("[remix] start id=%s prompt_length=%d", video_id, len(prompt))
    job = client.remix_video(video_id, prompt)
    logger.info("[remix] queued new_id=%s status=%s", job.id, job.status)
    return job


def wait_for_video(client: StudioClient, video_id: str) -> VideoJob:
    """Block until the video job completes; see polling.wait_for_completion."""
    return wait_for_completion(
        client.get_video_status,
        video_id,
        poll_interval=client.config.poll_interval,
        timeout=client.config.poll_timeout,
    )
