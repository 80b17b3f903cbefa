"""Unit tests for the Campaign Studio HTTP API."""

import io
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image, UnidentifiedImageError

from campaignstudio.client import UpstreamError
from campaignstudio.config import StudioConfig
from campaignstudio.datauri import to_data_url
from campaignstudio.models import GeneratedImage, ScriptValidationResult, VideoJob
from campaignstudio.services.images import ImageCheck
from campaignstudio.web import create_app

IMAGE_URL = "data:image/png;base64,aGVsbG8="


@pytest.fixture
def app(config):
    app = create_app(config, client=MagicMock())
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _images(obj=b"object bytes", scene=b"scene bytes", obj_type="image/png", **form):
    data = {
        "objectImage": (io.BytesIO(obj), "obj.png", obj_type),
        "sceneImage": (io.BytesIO(scene), "scene.png", "image/png"),
    }
    data.update(form)
    return data


class TestAppFactory:
    def test_body_limit_covers_two_uploads(self):
        app = create_app(StudioConfig(max_upload_bytes=10, max_json_bytes=15))
        assert app.config["MAX_CONTENT_LENGTH"] == 20

    def test_missing_api_key(self):
        app = create_app(StudioConfig(api_key=None), client=MagicMock())
        resp = app.test_client().post("/api/generate-video-script", json={"prompt": "x"})
        assert resp.status_code == 500
        assert resp.get_json()["message"] == "Missing OPENAI_API_KEY in server environment."

    def test_oversized_body_is_bad_request(self):
        config = StudioConfig(api_key="k", max_upload_bytes=10, max_json_bytes=100)
        app = create_app(config, client=MagicMock())
        resp = app.test_client().post(
            "/api/generate-image",
            data=_images(obj=b"x" * 500),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "File too large"


class TestGenerateVideoScript:
    @patch("campaignstudio.web.routes.script.generate_script")
    def test_success(self, mock_generate, client, sample_script):
        validation = ScriptValidationResult(valid=True, total_duration=8)
        mock_generate.return_value = (sample_script, validation)

        resp = client.post(
            "/api/generate-video-script",
            json={"prompt": "Bottle launch", "seconds": 8, "image": IMAGE_URL},
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["script"] == sample_script
        assert body["validation"]["valid"] is True
        assert body["validation"]["totalDuration"] == 8
        args = mock_generate.call_args.args
        assert args[1:] == ("Bottle launch", 8, IMAGE_URL)

    @patch("campaignstudio.web.routes.script.generate_script")
    def test_default_seconds(self, mock_generate, client):
        mock_generate.return_value = ("[00:00-00:04] x", ScriptValidationResult(valid=True))
        client.post("/api/generate-video-script", json={"prompt": "x"})
        assert mock_generate.call_args.args[2] == 4

    def test_prompt_required(self, client):
        resp = client.post("/api/generate-video-script", json={"seconds": 4})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Prompt is required."

    @pytest.mark.parametrize("body", [{"prompt": 5, "seconds": 4}, {"prompt": "   "}, ["x"]])
    def test_malformed_prompt(self, client, body):
        resp = client.post("/api/generate-video-script", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Prompt is required."

    @pytest.mark.parametrize("seconds", [5, "abc", 4.5, 16])
    def test_invalid_seconds(self, client, seconds):
        resp = client.post("/api/generate-video-script", json={"prompt": "x", "seconds": seconds})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Duration must be 4, 8, or 12 seconds."

    def test_invalid_image(self, client):
        resp = client.post(
            "/api/generate-video-script", json={"prompt": "x", "image": "not a data url"}
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid image payload."

    @patch("campaignstudio.web.routes.script.generate_script")
    def test_upstream_error(self, mock_generate, client):
        mock_generate.side_effect = UpstreamError("quota exceeded")
        resp = client.post("/api/generate-video-script", json={"prompt": "x"})
        assert resp.status_code == 500
        assert resp.get_json()["message"] == "quota exceeded"


class TestValidateScript:
    def test_valid(self, client, sample_script):
        resp = client.post("/api/validate-script", json={"script": sample_script, "seconds": 8})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["valid"] is True
        assert len(body["segments"]) == 3

    def test_invalid_reports_errors(self, client):
        resp = client.post("/api/validate-script", json={"script": "no beats", "seconds": 8})
        body = resp.get_json()
        assert body["valid"] is False
        assert body["errors"] == ["No valid timestamp patterns found. Expected format: [MM:SS-MM:SS]"]

    def test_missing_script(self, client):
        resp = client.post("/api/validate-script", json={"seconds": 8})
        assert resp.status_code == 400

    def test_bad_seconds(self, client):
        resp = client.post("/api/validate-script", json={"script": "x", "seconds": "eight"})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Seconds and tolerance must be numbers."

    @pytest.mark.parametrize("body", [
        {"seconds": "nan"},
        {"seconds": "inf"},
        {"seconds": 30, "tolerance": "nan"},
        {"seconds": 30, "tolerance": "-inf"},
    ])
    def test_non_finite_numbers_rejected(self, client, body):
        resp = client.post("/api/validate-script", json={"script": "[00:00-00:30] x", **body})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Seconds and tolerance must be numbers."

    def test_negative_tolerance_rejected(self, client):
        resp = client.post(
            "/api/validate-script", json={"script": "[00:00-00:30] x", "seconds": 30, "tolerance": -1}
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Tolerance must not be negative."

    def test_non_object_body(self, client):
        resp = client.post("/api/validate-script", json=["x"])
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Script is required."


class TestGenerateImage:
    @patch("campaignstudio.web.routes.images.blend_images")
    @patch("campaignstudio.web.routes.images.validate_product_image")
    def test_success(self, mock_check, mock_blend, client):
        mock_check.return_value = ImageCheck(is_valid=True, object_count=1)
        mock_blend.return_value = GeneratedImage(base64="b64", mime="image/png")

        resp = client.post(
            "/api/generate-image",
            data=_images(prompt="  Add steam.  "),
            content_type="multipart/form-data",
        )

        assert resp.status_code == 200
        assert resp.get_json() == {"base64": "b64", "mime": "image/png"}
        obj, scene, prompt = mock_blend.call_args.args[1:]
        assert obj.data == b"object bytes"
        assert scene.data == b"scene bytes"
        assert prompt == "Add steam."
        assert mock_check.call_args.args[1].startswith("data:image/png;base64,")

    @patch("campaignstudio.web.routes.images.blend_images")
    @patch("campaignstudio.web.routes.images.validate_product_image")
    def test_skip_validation(self, mock_check, mock_blend, client):
        mock_blend.return_value = GeneratedImage(base64="b64", mime="image/png")
        resp = client.post(
            "/api/generate-image",
            data=_images(skipValidation="true"),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        mock_check.assert_not_called()

    @patch("campaignstudio.web.routes.images.blend_images")
    @patch("campaignstudio.web.routes.images.validate_product_image")
    def test_validation_failed(self, mock_check, mock_blend, client):
        mock_check.return_value = ImageCheck(
            is_valid=False,
            object_count=2,
            reason="Image contains 2 objects, expected exactly 1 if prompt is empty",
        )
        resp = client.post(
            "/api/generate-image", data=_images(), content_type="multipart/form-data"
        )
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["code"] == "VALIDATION_FAILED"
        assert "2 objects" in body["message"]
        mock_blend.assert_not_called()

    def test_missing_scene(self, client):
        data = _images()
        del data["sceneImage"]
        resp = client.post("/api/generate-image", data=data, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Both subject and scene images are required."

    def test_non_image_rejected(self, client):
        resp = client.post(
            "/api/generate-image",
            data=_images(obj_type="application/pdf"),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Only image files are allowed."

    def test_file_over_upload_limit(self, config):
        config.max_upload_bytes = 4
        app = create_app(config, client=MagicMock())
        resp = app.test_client().post(
            "/api/generate-image", data=_images(), content_type="multipart/form-data"
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "File too large"

    @patch("campaignstudio.web.routes.images.blend_images")
    def test_upstream_error(self, mock_blend, client):
        mock_blend.side_effect = UpstreamError("No image returned from the API")
        resp = client.post(
            "/api/generate-image",
            data=_images(skipValidation="true"),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 500
        assert resp.get_json()["message"] == "No image returned from the API"


class TestEditImage:
    @patch("campaignstudio.web.routes.images.edit_image")
    def test_success(self, mock_edit, client):
        mock_edit.return_value = GeneratedImage(base64="edited", mime="image/png")
        resp = client.post("/api/edit-image", json={"image": IMAGE_URL, "prompt": "brighter"})
        assert resp.status_code == 200
        assert resp.get_json()["base64"] == "edited"
        parsed, prompt = mock_edit.call_args.args[1:]
        assert parsed.data == b"hello"
        assert prompt == "brighter"

    def test_image_required(self, client):
        resp = client.post("/api/edit-image", json={"prompt": "brighter"})
        assert resp.get_json()["message"] == "Image is required."

    def test_invalid_payload(self, client):
        resp = client.post("/api/edit-image", json={"image": "data:text/plain;base64,aGk="})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid image payload."

    def test_non_string_image(self, client):
        resp = client.post("/api/edit-image", json={"image": {"url": IMAGE_URL}})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid image payload."

    def test_non_string_prompt(self, client):
        resp = client.post("/api/edit-image", json={"image": IMAGE_URL, "prompt": 5})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Prompt must be a string."


class TestGenerateVideo:
    @patch("campaignstudio.web.routes.video.generate_video")
    def test_success(self, mock_generate, client):
        mock_generate.return_value = VideoJob(id="video_1", status="queued")
        resp = client.post(
            "/api/generate-video", json={"prompt": "script", "image": IMAGE_URL, "seconds": 12}
        )
        assert resp.status_code == 200
        assert resp.get_json() == {"id": "video_1", "status": "queued"}
        assert mock_generate.call_args.args[1:] == ("script", b"hello", 12)

    def test_prompt_and_image_required(self, client):
        resp = client.post("/api/generate-video", json={"prompt": "script"})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Prompt and image are required."

    def test_non_string_prompt(self, client):
        resp = client.post("/api/generate-video", json={"prompt": ["script"], "image": IMAGE_URL})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Prompt and image are required."

    @pytest.mark.parametrize("error", [
        UnidentifiedImageError("cannot identify image file"),
        OSError("image file is truncated (12 bytes not processed)"),
        Image.DecompressionBombError("Image size exceeds limit"),
    ])
    @patch("campaignstudio.web.routes.video.generate_video")
    def test_undecodable_image(self, mock_generate, client, error):
        mock_generate.side_effect = error
        resp = client.post("/api/generate-video", json={"prompt": "script", "image": IMAGE_URL})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid image payload."

    def test_truncated_image_end_to_end(self, config):
        buf = io.BytesIO()
        Image.effect_noise((64, 64), 64).convert("RGB").save(buf, format="PNG")
        truncated = buf.getvalue()[: len(buf.getvalue()) // 2]
        app = create_app(config, client=MagicMock(config=config))
        resp = app.test_client().post(
            "/api/generate-video",
            json={"prompt": "script", "image": to_data_url(truncated)},
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid image payload."


class TestVideoStatus:
    @patch("campaignstudio.web.routes.video.get_status")
    def test_status(self, mock_status, client):
        mock_status.return_value = VideoJob(id="video_1", status="failed", error="moderation")
        resp = client.get("/api/video/video_1")
        assert resp.get_json() == {"status": "failed", "error": "moderation"}

    @patch("campaignstudio.web.routes.video.get_status")
    def test_upstream_error(self, mock_status, client):
        mock_status.side_effect = UpstreamError("Video not found")
        resp = client.get("/api/video/missing")
        assert resp.status_code == 500
        assert resp.get_json()["message"] == "Video not found"


class TestVideoContent:
    @patch("campaignstudio.web.routes.video.get_content")
    def test_mp4(self, mock_content, client):
        mock_content.return_value = b"\x00\x00\x00\x18ftypmp42"
        resp = client.get("/api/video/video_1/content")
        assert resp.status_code == 200
        assert resp.mimetype == "video/mp4"
        assert resp.data == b"\x00\x00\x00\x18ftypmp42"


class TestRemix:
    @patch("campaignstudio.web.routes.video.remix_video")
    def test_success(self, mock_remix, client):
        mock_remix.return_value = VideoJob(id="video_2", status="queued")
        resp = client.post("/api/video/video_1/remix", json={"prompt": " black and white "})
        assert resp.get_json() == {"id": "video_2", "status": "queued"}
        assert mock_remix.call_args.args[1:] == ("video_1", "black and white")

    @pytest.mark.parametrize("body", [{"prompt": 5}, {"prompt": None}, ["prompt"]])
    def test_malformed_prompt(self, client, body):
        resp = client.post("/api/video/vid_1/remix", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Remix prompt is required."

    def test_prompt_required(self, client):
        resp = client.post("/api/video/video_1/remix", json={"prompt": "   "})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Remix prompt is required."
