"""Ad script generation via the Responses API."""

import logging

from campaignstudio.client import StudioClient, UpstreamError
from campaignstudio.datauri import extract_output_text
from campaignstudio.models import ScriptValidationResult
from campaignstudio.prompts import SCRIPT_SYSTEM_PROMPT, build_script_prompt
from campaignstudio.timing import validate_script

logger = logging.getLogger(__name__)


def generate_script(
    client: StudioClient,
    brief: str,
    seconds: int,
    image_data_url: str | None = None,
) -> tuple[str, ScriptValidationResult]:
    """Generate a timestamped script and check its timing.

    The validation result is informational; an invalid script is still
    returned so the caller can decide whether to regenerate.
    """
    logger.info(
        "[script] generate start seconds=%s brief_length=%d has_image=%s",
        seconds, len(brief), bool(image_data_url),
    )

    user_content: list[dict] = [{"type": "input_text", "text": build_script_prompt(brief, seconds)}]
    if image_data_url:
        user_content.append({"type": "input_image", "image_url": image_data_url})

    messages = [
        {"role": "system", "content": SCRIPT_SYSTEM_PROMPT},
        {"role": "user", "content": user_content},
    ]
    response = client.generate_response(messages)

    script = extract_output_text(response).strip()
    if not script:
        raise UpstreamError("No script returned from the API")

    validation = validate_script(script, seconds)
    if validation.valid:
        logger.info("[script] generate success length=%d", len(script))
    else:
        logger.warning("[script] timing check failed: %s", "; ".join(validation.errors))
    return script, validation
