"""Test image datasets for the evaluation harness."""

import base64
import logging
from pathlib import Path
from typing import Any

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

PLACEHOLDER_SUBJECTS = [
    ("subject-bottle.png", (512, 512), "#a8d8ea", "BOTTLE"),
    ("subject-mug.png", (512, 512), "#f4e1d2", "MUG"),
    ("subject-sneaker.png", (512, 512), "#ffffff", "SNEAKER"),
]

PLACEHOLDER_SCENES = [
    ("scene-kitchen.png", (1024, 1536), "#e8dcc4", "KITCHEN"),
    ("scene-outdoor.png", (1024, 1536), "#b8d8b8", "OUTDOOR"),
    ("scene-studio.png", (1024, 1536), "#dddddd", "STUDIO"),
    ("scene-white.png", (1024, 1536), "#fafafa", "WHITE"),
]

_ISOLATED = (
    "isolated on a pure white background. Clean studio lighting, sharp focus, high-end "
    "commercial photography style. Centered and filling most of the frame. No shadows, "
    "no reflections, no other objects."
)
_EMPTY = (
    "No objects - completely empty surface ready for product placement. "
    "Portrait orientation, vertical composition."
)

SUBJECT_PROMPTS = {
    "subject-bottle.png": "Professional product photography of a single elegant glass water "
                          f"bottle with a minimalist blue label, {_ISOLATED}",
    "subject-mug.png": "Professional product photography of a single white ceramic coffee "
                       f"mug with a simple modern design, {_ISOLATED}",
    "subject-sneaker.png": "Professional product photography of a single modern white "
                           f"athletic sneaker shown from a 3/4 angle, {_ISOLATED}",
}

SCENE_PROMPTS = {
    "scene-kitchen.png": "Empty modern kitchen counter, marble countertop, soft natural "
                         f"daylight from the left, blurred cabinets behind. {_EMPTY}",
    "scene-outdoor.png": "Empty rustic wooden outdoor table in a garden, soft morning "
                         f"sunlight, blurred foliage and flowers behind. {_EMPTY}",
    "scene-studio.png": "Empty minimalist photography studio surface, light gray seamless "
                        f"backdrop, soft professional lighting. {_EMPTY}",
    "scene-white.png": "Pure white background with a very subtle soft gradient shadow at "
                       f"the bottom, professional product backdrop. {_EMPTY}",
}


def create_placeholder(output_path: Path, size: tuple[int, int], color: str, label: str) -> Path:
    """Draw a flat colored image with a centered label."""
    width, height = size
    img = Image.new("RGB", size, color)
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default(size=min(width, height) // 10)
    small = ImageFont.load_default(size=min(width, height) // 20)
    draw.text((width / 2, height / 2), label, fill="#333333", font=font, anchor="mm")
    draw.text((width / 2, height * 0.6), "PLACEHOLDER", fill="#666666", font=small, anchor="mm")
    img.save(output_path, format="PNG")
    return output_path


def generate_placeholders(datasets_dir: Path) -> list[Path]:
    """Write placeholder subject and scene images under *datasets_dir*."""
    written: list[Path] = []
    for subdir, specs in (("subjects", PLACEHOLDER_SUBJECTS), ("scenes", PLACEHOLDER_SCENES)):
        target = datasets_dir / subdir
        target.mkdir(parents=True, exist_ok=True)
        for filename, size, color, label in specs:
            written.append(create_placeholder(target / filename, size, color, label))
            logger.info("[datasets] created %s", filename)
    return written


def generate_test_images(
    sdk: Any,
    datasets_dir: Path,
    model: str = "gpt-image-1",
    size: str = "1024x1536",
    quality: str = "medium",
) -> list[Path]:
    """Generate realistic subject and scene images with the hosted image model.

    Subjects get a transparent background so they composite cleanly.
    """
    written: list[Path] = []
    jobs = [
        ("subjects", SUBJECT_PROMPTS, {"background": "transparent", "size": "1024x1024"}),
        ("scenes", SCENE_PROMPTS, {"size": size}),
    ]
    for subdir, prompts, options in jobs:
        target = datasets_dir / subdir
        target.mkdir(parents=True, exist_ok=True)
        for filename, prompt in prompts.items():
            logger.info("[datasets] generating %s", filename)
            resp = sdk.images.generate(model=model, prompt=prompt, n=1, quality=quality, **options)
            output = target / filename
            output.write_bytes(base64.b64decode(resp.data[0].b64_json))
            written.append(output)
    return written
