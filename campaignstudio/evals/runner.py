"""Generate artifacts, submit them to hosted evals and collect the results.

Test cases live in ``<datasets_dir>/test-cases.json``::

    {
      "imageBlending": [{"id", "description", "subject", "scene", "prompt"}],
      "videoGeneration": [{"id", "description", "subject", "brief", "seconds"}],
      "videoRemix": [{"id", "videoId", "prompt"}]
    }

Image paths are relative to the datasets directory.
"""

import json
import logging
import mimetypes
import subprocess
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import openai

from campaignstudio import ffutil
from campaignstudio.client import StudioClient, UpstreamError
from campaignstudio.datauri import to_data_url
from campaignstudio.evals.definitions import IDENTITY_FRAME_COUNT
from campaignstudio.evals.store import load_eval_ids
from campaignstudio.models import ImagePayload
from campaignstudio.polling import JobFailedError, PollTimeoutError, wait_for_completion
from campaignstudio.sampling import SamplingError
from campaignstudio.services import images, script, video
from campaignstudio.timing import format_validation_result

logger = logging.getLogger(__name__)

# Per-case failures are logged and skipped; the remaining cases still run.
CASE_ERRORS = (
    UpstreamError,
    JobFailedError,
    PollTimeoutError,
    SamplingError,
    ffutil.ProbeError,
    subprocess.CalledProcessError,
    OSError,
    ValueError,
)


def load_test_cases(datasets_dir: Path) -> dict[str, list[dict[str, Any]]]:
    return json.loads((datasets_dir / "test-cases.json").read_text())


def read_image_file(datasets_dir: Path, relative_path: str) -> ImagePayload:
    path = datasets_dir / relative_path
    mime = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    return ImagePayload(mime=mime, data=path.read_bytes(), name=path.name)


def upload_eval_file(sdk: Any, rows: list[dict[str, Any]], filename: str) -> str:
    """Upload rows as a JSONL file for the evals API and return its id."""
    jsonl = "\n".join(json.dumps(r) for r in rows).encode("utf-8")
    uploaded = sdk.files.create(file=(filename, jsonl), purpose="evals")
    logger.info("[evals] uploaded %s (%s)", filename, uploaded.id)
    return uploaded.id


def submit_run(client: StudioClient, eval_id: str, name: str, rows: list[dict[str, Any]]) -> Any:
    """Create an eval run over *rows* and wait for it to finish."""
    sdk = client.sdk
    stamp = int(time.time() * 1000)
    file_id = upload_eval_file(sdk, rows, f"{name.lower().replace(' ', '-')}-{stamp}.jsonl")

    run = sdk.evals.runs.create(
        eval_id,
        name=f"{name} - {datetime.now(timezone.utc).isoformat()}",
        data_source={"type": "jsonl", "source": {"type": "file_id", "id": file_id}},
    )
    logger.info("[evals] run created: %s (%s)", run.id, getattr(run, "report_url", None))

    completed = wait_for_completion(
        lambda run_id: sdk.evals.runs.retrieve(run_id, eval_id=eval_id),
        run.id,
        poll_interval=client.config.poll_interval,
        timeout=client.config.poll_timeout,
    )
    counts = completed.result_counts
    logger.info("[evals] %s: %s/%s passed", name, counts.passed, counts.total)
    return completed


def _download_video(client: StudioClient, video_id: str, work_dir: Path) -> Path:
    video.wait_for_video(client, video_id)
    path = work_dir / f"{video_id}.mp4"
    path.write_bytes(video.get_content(client, video_id))
    return path


def run_image_quality_eval(
    client: StudioClient, eval_id: str, test_cases: dict, datasets_dir: Path
) -> Any:
    rows = []
    for tc in test_cases.get("imageBlending", []):
        logger.info("[evals] generating %s - %s", tc["id"], tc.get("description", ""))
        try:
            subject = read_image_file(datasets_dir, tc["subject"])
            scene = read_image_file(datasets_dir, tc["scene"])
            result = images.blend_images(client, subject, scene, tc.get("prompt"))
        except CASE_ERRORS as e:
            logger.error("[evals] %s failed: %s", tc["id"], e)
            continue
        rows.append({
            "item": {
                "subject_image_url": to_data_url(subject.data, subject.mime),
                "scene_image_url": to_data_url(scene.data, scene.mime),
                "prompt": tc.get("prompt", ""),
                "generated_image_url": f"data:{result.mime};base64,{result.base64}",
            }
        })

    if not rows:
        logger.info("[evals] no images generated, skipping image quality eval")
        return None
    return submit_run(client, eval_id, "Image Quality", rows)


def run_video_identity_eval(
    client: StudioClient, eval_id: str, test_cases: dict, datasets_dir: Path
) -> Any:
    rows = []
    with tempfile.TemporaryDirectory(prefix="identity-") as tmpdir:
        work_dir = Path(tmpdir)
        for tc in test_cases.get("videoGeneration", []):
            logger.info("[evals] generating %s - %s", tc["id"], tc.get("description", ""))
            seconds = int(tc.get("seconds", 4))
            try:
                subject = read_image_file(datasets_dir, tc["subject"])
                subject_url = to_data_url(subject.data, subject.mime)
                text, validation = script.generate_script(client, tc["brief"], seconds, subject_url)
                logger.info("[evals] %s script check:\n%s", tc["id"], format_validation_result(validation))

                job = video.generate_video(client, text, subject.data, seconds)
                video_path = _download_video(client, job.id, work_dir)
                extraction = ffutil.extract_frames(
                    video_path, work_dir / job.id, count=IDENTITY_FRAME_COUNT
                )
                frame_urls = ffutil.frames_to_data_urls(extraction.frames)
                ffutil.cleanup_frames(extraction.frames, remove_dir=True)
            except CASE_ERRORS as e:
                logger.error("[evals] %s failed: %s", tc["id"], e)
                continue
            rows.append({
                "item": {
                    "reference_image_url": subject_url,
                    "frame_urls": frame_urls,
                    "script": text,
                }
            })

    if not rows:
        logger.info("[evals] no videos generated, skipping video identity eval")
        return None
    return submit_run(client, eval_id, "Video Identity", rows)


def run_remix_eval(client: StudioClient, eval_id: str, test_cases: dict) -> Any:
    rows = []
    with tempfile.TemporaryDirectory(prefix="remix-") as tmpdir:
        work_dir = Path(tmpdir)
        for tc in test_cases.get("videoRemix", []):
            logger.info("[evals] remixing %s from %s", tc["id"], tc["videoId"])
            try:
                job = video.remix_video(client, tc["videoId"], tc["prompt"])
                video_path = _download_video(client, job.id, work_dir)
                frame = ffutil.extract_single_frame(video_path, output_path=work_dir / f"{job.id}.png")
                frame_url = to_data_url(frame.read_bytes(), "image/png")
            except CASE_ERRORS as e:
                logger.error("[evals] %s failed: %s", tc["id"], e)
                continue
            rows.append({"item": {"frame_url": frame_url, "remix_prompt": tc["prompt"]}})

    if not rows:
        logger.info("[evals] no remixes generated, skipping remix eval")
        return None
    return submit_run(client, eval_id, "Remix BW", rows)


def _counts(run: Any) -> dict[str, int] | None:
    if run is None:
        return None
    counts = run.result_counts
    return {"passed": counts.passed, "failed": counts.failed, "total": counts.total}


def run_evals(client: StudioClient) -> dict[str, dict[str, int] | None]:
    """Run every configured eval and write a summary file.

    Returns a map of eval name to result counts, ``None`` for skipped evals.
    """
    evals = client.config.evals
    ids = load_eval_ids(evals.ids_path)
    if not ids:
        raise FileNotFoundError(f"No eval ids in {evals.ids_path}; run the eval setup first")
    test_cases = load_test_cases(evals.datasets_dir)

    runners = {
        "imageQuality": lambda eval_id: run_image_quality_eval(
            client, eval_id, test_cases, evals.datasets_dir
        ),
        "videoIdentity": lambda eval_id: run_video_identity_eval(
            client, eval_id, test_cases, evals.datasets_dir
        ),
        "remixBW": lambda eval_id: run_remix_eval(client, eval_id, test_cases),
    }

    started = time.monotonic()
    summary: dict[str, dict[str, int] | None] = {}
    for name, run in runners.items():
        summary[name] = None
        if not ids.get(name):
            logger.info("[evals] %s not configured, skipping", name)
            continue
        try:
            summary[name] = _counts(run(ids[name]))
        except (openai.OpenAIError, UpstreamError, JobFailedError, PollTimeoutError) as e:
            logger.error("[evals] %s eval failed: %s", name, e)

    elapsed_minutes = (time.monotonic() - started) / 60
    evals.results_dir.mkdir(parents=True, exist_ok=True)
    summary_path = evals.results_dir / f"summary-{int(time.time() * 1000)}.json"
    summary_path.write_text(json.dumps({
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "elapsed": f"{elapsed_minutes:.1f} minutes",
        "summary": summary,
    }, indent=2))
    logger.info("[evals] summary saved: %s", summary_path)
    return summary
