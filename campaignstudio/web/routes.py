"""HTTP routes for Campaign Studio."""

import logging
import math

from flask import Blueprint, Response, current_app, jsonify, request
from PIL import Image

from campaignstudio.client import StudioClient, UpstreamError
from campaignstudio.datauri import parse_data_url, to_data_url
from campaignstudio.models import ImagePayload
from campaignstudio.services import images, script, video
from campaignstudio.timing import validate_script

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__)


def _config():
    return current_app.config["STUDIO"]


def _client() -> StudioClient:
    client = current_app.extensions.get("studio_client")
    if client is None:
        client = StudioClient(_config())
        current_app.extensions["studio_client"] = client
    return client


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _error(message: str, status: int = 400, **extra):
    return jsonify({"message": message, **extra}), status


def _missing_api_key():
    if not _config().api_key:
        return _error("Missing OPENAI_API_KEY in server environment.", 500)
    return None


def _parse_seconds(raw, allowed: tuple[int, ...]) -> int | None:
    if raw is None:
        raw = 4
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not value.is_integer() or int(value) not in allowed:
        return None
    return int(value)


def _duration_message(allowed: tuple[int, ...]) -> str:
    *head, last = [str(s) for s in allowed]
    choices = f"{', '.join(head)}, or {last}" if head else last
    return f"Duration must be {choices} seconds."


def _read_upload(field: str) -> ImagePayload | None:
    f = request.files.get(field)
    if f is None or not f.filename:
        return None
    return ImagePayload(mime=f.mimetype or "", data=f.read(), name=f.filename)


@bp.route("/api/generate-video-script", methods=["POST"])
def generate_video_script():
    if (err := _missing_api_key()) is not None:
        return err

    body = _json_body()
    prompt = body.get("prompt")
    image = body.get("image")
    allowed = _config().allowed_seconds
    seconds = _parse_seconds(body.get("seconds"), allowed)

    if not isinstance(prompt, str) or not prompt.strip():
        logger.info("[validation] generate-video-script FAILED: prompt is required")
        return _error("Prompt is required.")
    if seconds is None:
        logger.info("[validation] generate-video-script FAILED: invalid duration %r", body.get("seconds"))
        return _error(_duration_message(allowed))
    if image and parse_data_url(image) is None:
        logger.info("[validation] generate-video-script FAILED: invalid image payload")
        return _error("Invalid image payload.")

    try:
        text, validation = script.generate_script(_client(), prompt, seconds, image or None)
    except UpstreamError as e:
        logger.error("[script] route error: %s", e)
        return _error(str(e) or "Script generation failed.", 500)
    return jsonify({"script": text, "validation": validation.to_dict()})


@bp.route("/api/validate-script", methods=["POST"])
def validate_video_script():
    body = _json_body()
    text = body.get("script")
    if not isinstance(text, str):
        return _error("Script is required.")
    try:
        expected = float(body.get("seconds"))
        tolerance = float(body.get("tolerance", 1))
    except (TypeError, ValueError):
        return _error("Seconds and tolerance must be numbers.")
    if not (math.isfinite(expected) and math.isfinite(tolerance)):
        return _error("Seconds and tolerance must be numbers.")
    if tolerance < 0:
        return _error("Tolerance must not be negative.")

    if expected.is_integer():
        expected = int(expected)
    if tolerance.is_integer():
        tolerance = int(tolerance)
    return jsonify(validate_script(text, expected, tolerance).to_dict())


@bp.route("/api/generate-image", methods=["POST"])
def generate_image():
    if (err := _missing_api_key()) is not None:
        return err

    object_image = _read_upload("objectImage")
    scene_image = _read_upload("sceneImage")
    skip_validation = request.form.get("skipValidation") == "true"
    user_prompt = (request.form.get("prompt") or "").strip() or None

    if object_image is None or scene_image is None:
        logger.info(
            "[validation] generate-image FAILED: missing images object=%s scene=%s",
            object_image is not None, scene_image is not None,
        )
        return _error("Both subject and scene images are required.")
    for upload in (object_image, scene_image):
        if not upload.mime.startswith("image/"):
            return _error("Only image files are allowed.")
        if len(upload.data) > _config().max_upload_bytes:
            return _error("File too large")

    client = _client()
    try:
        if not skip_validation:
            check = images.validate_product_image(
                client, to_data_url(object_image.data, object_image.mime), user_prompt
            )
            if not check.is_valid:
                return _error(
                    check.reason or "Product image validation failed",
                    code="VALIDATION_FAILED",
                )
        result = images.blend_images(client, object_image, scene_image, user_prompt)
    except UpstreamError as e:
        logger.error("[images] route error: %s", e)
        return _error(str(e) or "Image generation failed.", 500)
    return jsonify(result.to_dict())


@bp.route("/api/edit-image", methods=["POST"])
def edit_image():
    if (err := _missing_api_key()) is not None:
        return err

    body = _json_body()
    image = body.get("image")
    prompt = body.get("prompt")

    if not image:
        return _error("Image is required.")
    if prompt is not None and not isinstance(prompt, str):
        return _error("Prompt must be a string.")
    parsed = parse_data_url(image)
    if parsed is None:
        logger.info("[validation] edit-image FAILED: invalid image payload")
        return _error("Invalid image payload.")

    try:
        result = images.edit_image(_client(), parsed, (prompt or "").strip() or None)
    except UpstreamError as e:
        logger.error("[edit] route error: %s", e)
        return _error(str(e) or "Image editing failed.", 500)
    return jsonify(result.to_dict())


@bp.route("/api/generate-video", methods=["POST"])
def generate_video():
    if (err := _missing_api_key()) is not None:
        return err

    body = _json_body()
    prompt = body.get("prompt")
    image = body.get("image")
    allowed = _config().allowed_seconds
    seconds = _parse_seconds(body.get("seconds"), allowed)

    if not isinstance(prompt, str) or not prompt.strip() or not image:
        return _error("Prompt and image are required.")
    if seconds is None:
        return _error(_duration_message(allowed))
    parsed = parse_data_url(image)
    if parsed is None:
        return _error("Invalid image payload.")

    try:
        job = video.generate_video(_client(), prompt, parsed.data, seconds)
    except (OSError, Image.DecompressionBombError) as e:
        # UnidentifiedImageError and truncated-file errors are both OSError
        logger.info("[validation] generate-video FAILED: unreadable image: %s", e)
        return _error("Invalid image payload.")
    except UpstreamError as e:
        logger.error("[video] route error: %s", e)
        return _error(str(e) or "Video generation failed.", 500)
    return jsonify({"id": job.id, "status": job.status})


@bp.route("/api/video/<video_id>")
def video_status(video_id: str):
    if (err := _missing_api_key()) is not None:
        return err
    try:
        job = video.get_status(_client(), video_id)
    except UpstreamError as e:
        logger.error("[video] status error: %s", e)
        return _error(str(e) or "Unable to fetch status.", 500)
    return jsonify({"status": job.status, "error": job.error})


@bp.route("/api/video/<video_id>/content")
def video_content(video_id: str):
    if (err := _missing_api_key()) is not None:
        return err
    try:
        data = video.get_content(_client(), video_id)
    except UpstreamError as e:
        logger.error("[video] content error: %s", e)
        return _error(str(e) or "Unable to fetch video.", 500)
    return Response(data, mimetype="video/mp4")


@bp.route("/api/video/<video_id>/remix", methods=["POST"])
def remix(video_id: str):
    if (err := _missing_api_key()) is not None:
        return err

    body = _json_body()
    prompt = body.get("prompt")
    prompt = prompt.strip() if isinstance(prompt, str) else ""
    if not prompt:
        logger.info("[validation] remix FAILED: prompt is required id=%s", video_id)
        return _error("Remix prompt is required.")

    try:
        job = video.remix_video(_client(), video_id, prompt)
    except UpstreamError as e:
        logger.error("[remix] route error: %s", e)
        return _error(str(e) or "Remix failed.", 500)
    return jsonify({"id": job.id, "status": job.status})
