"""Prompt templates for the hosted image, video and text models."""

from campaignstudio.timing import parse_time_ranges

IMAGE_PROMPT_BASE = (
    "Use image 1 as the subject and image 2 as the scene. Place the subject naturally "
    "into the scene with realistic lighting, shadow, and perspective. Preserve branding "
    "details, textures, and colors on the subject. The output image should have an aspect "
    "ratio suitable for viewing on social media apps like Instagram and TikTok."
)

REGENERATE_PROMPT_BASE = (
    "Refine and improve this image based on the prompt. Only make the changes specified "
    "in the prompt and keep the image as close as possible to the original."
)

SCRIPT_SYSTEM_PROMPT = (
    "You are a creative director writing concise ad scripts for premium brands. "
    "Only output the script, no other text."
)

_LOOK_TAIL = (
    "180° shutter; digital capture emulating 65 mm photochemical contrast; fine grain; "
    "subtle halation on speculars; no gate weave."
)

_PRODUCTION_NOTES = [
    "Lenses & Filtration",
    "32 mm / 50 mm spherical primes; Black Pro-Mist 1/4; slight CPL rotation to manage "
    "glass reflections on train windows.",
    "",
    "Grade / Palette",
    "Highlights: clean morning sunlight with amber lift.",
    "Mids: balanced neutrals with slight teal cast in shadows.",
    "Blacks: soft, neutral with mild lift for haze retention.",
    "",
    "Lighting & Atmosphere",
    "Natural sunlight from camera left, low angle (07:30 AM).",
    "Bounce: 4×4 ultrabounce silver from trackside.",
    "Negative fill from opposite wall.",
    "Practical: sodium platform lights on dim fade.",
    "Atmos: gentle mist; train exhaust drift through light beam.",
    "",
    "Location & Framing",
    "Urban commuter platform, dawn.",
    "Foreground: yellow safety line, coffee cup on bench.",
    "Midground: waiting passengers silhouetted in haze.",
    "Background: arriving train braking to a stop.",
    "Avoid signage or corporate branding.",
    "",
    "Wardrobe / Props / Extras",
    "Main subject: mid-30s traveler, navy coat, backpack slung on one shoulder, holding "
    "phone loosely at side.",
    "Extras: commuters in muted tones; one cyclist pushing bike.",
    "Props: paper coffee cup, rolling luggage, LED departure board (generic destinations).",
    "",
    "Sound",
    "Diegetic only: faint rail screech, train brakes hiss, distant announcement muffled "
    "(-20 LUFS), low ambient hum.",
    "Footsteps and paper rustle; no score or added foley.",
]

_CAMERA_NOTES = [
    "Camera Notes (Why It Reads)",
    "Keep eyeline low and close to lens axis for intimacy.",
    "Allow micro flares from train glass as aesthetic texture.",
    "Preserve subtle handheld imperfection for realism.",
    "Do not break silhouette clarity with overexposed flare; retain skin highlight roll-off.",
    "",
    "Finishing",
    "Fine-grain overlay with mild chroma noise for realism; restrained halation on "
    "practicals; warm-cool LUT for morning split tone.",
    "Mix: prioritize train and ambient detail over footstep transients.",
    "Poster frame: traveler mid-turn, golden rim light, arriving train soft-focus in "
    "background haze.",
]


def _with_user_prompt(base: str, user_prompt: str | None) -> str:
    if not user_prompt:
        return base
    return f"{base} {user_prompt}"


def build_image_prompt(user_prompt: str | None = None) -> str:
    return _with_user_prompt(IMAGE_PROMPT_BASE, user_prompt)


def build_regenerate_prompt(user_prompt: str | None = None) -> str:
    return _with_user_prompt(REGENERATE_PROMPT_BASE, user_prompt)


def build_script_prompt(brief: str, seconds: int) -> str:
    return "\n".join([
        "Write a concise ad video script for a premium marketing spot.",
        f"Total duration: {seconds} seconds.",
        "Output format: timestamped beats that fully cover the total duration.",
        "Each line must be in the form: [MM:SS-MM:SS] Beat description (scene + action + camera).",
        "The final timestamp must end exactly at the total duration.",
        "Use 3-7 beats depending on duration.",
        "Keep it brand-safe, product-forward, and cinematic.",
        "",
        f"Brief: {brief}",
    ])


def build_video_prompt(script: str | None) -> str:
    """Wrap a timestamped script in a cinematic production brief.

    The shot list header reports the number of beats and the end of the
    last beat, or marks them unspecified when the script has no ranges.
    """
    cleaned = (script or "").strip()
    ranges = parse_time_ranges(cleaned)
    shot_count = len(ranges)
    duration = ranges[-1].end if ranges else None

    if duration is not None:
        look_line = f"Duration {duration}s; {_LOOK_TAIL}"
        header = f"Optimized Shot List ({shot_count} shots / {duration} s total)"
    else:
        look_line = f"Duration unspecified; {_LOOK_TAIL}"
        header = "Optimized Shot List (shots and duration unspecified)"

    lines = [
        "Format & Look",
        look_line,
        "",
        *_PRODUCTION_NOTES,
        "",
        header,
        cleaned,
        "",
        *_CAMERA_NOTES,
    ]
    return "\n".join(lines)
