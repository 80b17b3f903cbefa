"""Image blending, editing and product-image checks."""

import logging
import re
from dataclasses import dataclass

from campaignstudio.client import StudioClient, UpstreamError
from campaignstudio.datauri import extract_output_text
from campaignstudio.models import GeneratedImage, ImagePayload
from campaignstudio.prompts import build_image_prompt, build_regenerate_prompt

logger = logging.getLogger(__name__)


@dataclass
class ImageCheck:
    """Result of checking a product image before blending."""

    is_valid: bool
    reason: str | None = None
    object_count: int | None = None
    contains_object: bool | None = None
    validation_error: str | None = None


def blend_images(
    client: StudioClient,
    object_image: ImagePayload,
    scene_image: ImagePayload,
    user_prompt: str | None = None,
) -> GeneratedImage:
    """Composite the subject image into the scene image."""
    logger.info(
        "[images] blend start object=%s scene=%s has_prompt=%s",
        object_image.name, scene_image.name, bool(user_prompt),
    )
    result = client.edit_images([object_image, scene_image], build_image_prompt(user_prompt))
    logger.info("[images] blend success bytes=%d", len(result.base64))
    return result


def edit_image(
    client: StudioClient, image: ImagePayload, user_prompt: str | None = None
) -> GeneratedImage:
    logger.info("[edit] start size=%d has_prompt=%s", len(image.data), bool(user_prompt))
    source = ImagePayload(mime=image.mime, data=image.data, name="source.png")
    result = client.edit_images([source], build_regenerate_prompt(user_prompt))
    logger.info("[edit] success bytes=%d", len(result.base64))
    return result


def validate_product_image(
    client: StudioClient, image_data_url: str, user_prompt: str | None = None
) -> ImageCheck:
    """Ask the vision model whether the product image is usable.

    With a prompt, the image must contain an object the prompt mentions.
    Without one, it must contain exactly one object. If the check itself
    fails upstream, the image is let through and the error recorded.
    """
    has_prompt = bool(user_prompt and user_prompt.strip())
    if has_prompt:
        question = (
            f'Does this image contain an object mentioned in the following text: "{user_prompt}"?\n'
            'Answer with just "yes" or "no".'
        )
    else:
        question = "How many distinct objects/products are in this image?\nAnswer with just a number."

    try:
        response = client.analyze_image(image_data_url, question)
    except UpstreamError as e:
        logger.error("[validation] product image check failed: %s", e)
        return ImageCheck(is_valid=True, validation_error=str(e))

    text = extract_output_text(response).strip().lower()
    logger.info("[validation] model answered %r", text)

    if has_prompt:
        contains = "yes" in text
        return ImageCheck(
            is_valid=contains,
            contains_object=contains,
            reason=None if contains else (
                f'Image does not contain an object mentioned in the prompt: "{user_prompt}"'
            ),
        )

    m = re.search(r"\d+", text)
    count = int(m.group(0)) if m else None
    if count == 1:
        return ImageCheck(is_valid=True, object_count=count)
    if count is None:
        reason = "Could not determine object count"
    else:
        reason = f"Image contains {count} objects, expected exactly 1 if prompt is empty"
    return ImageCheck(is_valid=False, object_count=count, reason=reason)
