"""Hosted eval configurations used to grade generated artifacts."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

QUALITY_LABELS = ["excellent", "good", "acceptable", "poor", "failed"]
QUALITY_PASSING = ["excellent", "good", "acceptable"]

# Must match the frame count the video identity runner extracts.
IDENTITY_FRAME_COUNT = 8

IMAGE_QUALITY_GRADER = """You are an expert evaluator for marketing creative images. You will be shown:
1. A subject/product image (the item to be composited)
2. A scene/background image
3. The final blended result
4. The prompt used for the blend

Evaluate the final image and assign one of these labels:
- "excellent": Subject is perfectly preserved, naturally integrated into scene, professional quality
- "good": Subject mostly preserved, decent integration, minor issues
- "acceptable": Subject recognizable, some integration issues, usable for drafts
- "poor": Significant quality issues, subject distorted or poorly integrated
- "failed": Subject unrecognizable or major generation failures

Consider:
- Subject identity preservation (is the product/item recognizable and accurate?)
- Scene integration (does the subject look natural in the scene?)
- Overall visual quality (lighting, shadows, composition)"""

VIDEO_IDENTITY_GRADER = f"""You are an expert evaluator for AI-generated marketing videos. You will be shown:
1. A reference product image (what the subject should look like)
2. {IDENTITY_FRAME_COUNT} frames extracted from the generated video

Evaluate if the subject/product maintains its identity throughout the video and assign one of these labels:
- "excellent": Subject perfectly preserved in all frames, instantly recognizable as the same product
- "good": Subject mostly consistent, minor variations but clearly the same item
- "acceptable": Subject recognizable but some frames show notable differences
- "poor": Subject identity inconsistent, hard to tell it's the same product
- "failed": Subject unrecognizable or completely different from reference

Focus on:
- Is the product/subject consistent across all frames?
- Does it match the reference image in key visual features?
- Are there any major morphing or identity drift issues?"""

REMIX_BW_GRADER = """You are verifying if a video frame has been converted to black and white.

The remix prompt requested: "{{ item.remix_prompt }}"

Look at the provided video frame and determine if it is in black and white (grayscale).

Assign one of these labels:
- "pass": The image is clearly in black and white / grayscale
- "fail": The image still has color or the effect was not applied"""


def _custom_source(properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "custom",
        "item_schema": {
            "type": "object",
            "properties": properties,
            "required": list(properties),
        },
        "include_sample_schema": False,
    }


def _text(text: str) -> dict[str, str]:
    return {"type": "input_text", "text": text}


def _image(template: str) -> dict[str, str]:
    return {"type": "input_image", "image_url": template}


def image_quality_eval() -> dict[str, Any]:
    return {
        "name": "Campaign Studio - Image Quality",
        "data_source_config": _custom_source({
            "subject_image_url": {"type": "string", "description": "URL of the subject/product image"},
            "scene_image_url": {"type": "string", "description": "URL of the scene/background image"},
            "prompt": {"type": "string", "description": "User prompt for the image blend"},
            "generated_image_url": {"type": "string", "description": "URL of the generated blended image"},
        }),
        "testing_criteria": [
            {
                "type": "label_model",
                "name": "Image Quality Grader",
                "model": "gpt-4o",
                "input": [
                    {"role": "developer", "content": IMAGE_QUALITY_GRADER},
                    {
                        "role": "user",
                        "content": [
                            _text("Prompt: {{ item.prompt }}\n\nSubject image:"),
                            _image("{{ item.subject_image_url }}"),
                            _text("\n\nScene image:"),
                            _image("{{ item.scene_image_url }}"),
                            _text("\n\nGenerated result:"),
                            _image("{{ item.generated_image_url }}"),
                        ],
                    },
                ],
                "labels": QUALITY_LABELS,
                "passing_labels": QUALITY_PASSING,
            }
        ],
        "metadata": {"description": "Evaluates image blending quality for Campaign Studio"},
    }


def video_identity_eval() -> dict[str, Any]:
    frames = [_image(f"{{{{ item.frame_urls[{i}] }}}}") for i in range(IDENTITY_FRAME_COUNT)]
    return {
        "name": "Campaign Studio - Video Identity",
        "data_source_config": _custom_source({
            "reference_image_url": {"type": "string", "description": "URL of the reference product image"},
            "frame_urls": {
                "type": "array",
                "items": {"type": "string"},
                "description": f"URLs of extracted video frames ({IDENTITY_FRAME_COUNT} frames)",
            },
            "script": {"type": "string", "description": "The script/prompt used for video generation"},
        }),
        "testing_criteria": [
            {
                "type": "label_model",
                "name": "Video Identity Grader",
                "model": "gpt-4o",
                "input": [
                    {"role": "developer", "content": VIDEO_IDENTITY_GRADER},
                    {
                        "role": "user",
                        "content": [
                            _text("Script: {{ item.script }}\n\nReference product image:"),
                            _image("{{ item.reference_image_url }}"),
                            _text("\n\nVideo frames (in order):"),
                            *frames,
                        ],
                    },
                ],
                "labels": QUALITY_LABELS,
                "passing_labels": QUALITY_PASSING,
            }
        ],
        "metadata": {"description": "Evaluates subject identity preservation in generated videos"},
    }


def remix_bw_eval() -> dict[str, Any]:
    return {
        "name": "Campaign Studio - Remix B&W Verification",
        "data_source_config": _custom_source({
            "frame_url": {"type": "string", "description": "URL of a frame from the remixed video"},
            "remix_prompt": {"type": "string", "description": "The remix prompt (should be B&W conversion)"},
        }),
        "testing_criteria": [
            {
                "type": "label_model",
                "name": "Remix B&W Verifier",
                "model": "gpt-4o-mini",
                "input": [
                    {"role": "developer", "content": REMIX_BW_GRADER},
                    {
                        "role": "user",
                        "content": [_text("Video frame:"), _image("{{ item.frame_url }}")],
                    },
                ],
                "labels": ["pass", "fail"],
                "passing_labels": ["pass"],
            }
        ],
        "metadata": {"description": "Verifies B&W remix effect was correctly applied"},
    }


EVAL_BUILDERS = {
    "imageQuality": image_quality_eval,
    "videoIdentity": video_identity_eval,
    "remixBW": remix_bw_eval,
}


def create_evals(sdk: Any, existing: dict[str, str]) -> dict[str, str]:
    """Create the evals missing from *existing* and return the merged id map."""
    ids = dict(existing)
    for name, build in EVAL_BUILDERS.items():
        if ids.get(name):
            logger.info("[evals] %s already exists: %s", name, ids[name])
            continue
        created = sdk.evals.create(**build())
        ids[name] = created.id
        logger.info("[evals] created %s: %s", name, created.id)
    return ids
