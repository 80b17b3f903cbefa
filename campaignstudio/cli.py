"""Thin CLI entry point: serve the API, check scripts, sample frames, run evals."""

import argparse
import json
import logging
import sys
from pathlib import Path

from campaignstudio.config import load_config, load_config_file
from campaignstudio.timing import format_validation_result, validate_script


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="campaignstudio",
        description="Campaign Studio: ad image/video generation backend and eval harness.",
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to a JSON config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Launch the HTTP API")
    serve.add_argument("--port", type=int, help="Port to listen on")
    serve.add_argument("--host", type=str, help="Host to bind to")

    check = sub.add_parser("validate-script", help="Check a script's timestamp ranges")
    check.add_argument("script", type=Path, help="Script text file ('-' for stdin)")
    check.add_argument("--seconds", type=int, required=True, help="Expected duration in seconds")
    check.add_argument("--tolerance", type=float, default=1, help="Allowed deviation in seconds")
    check.add_argument("--json", action="store_true", help="Print the result as JSON")

    frames = sub.add_parser("sample-frames", help="Extract evenly spaced frames from a video")
    frames.add_argument("video", type=Path, help="Input video file")
    frames.add_argument("--count", type=int, default=8, help="Number of frames")
    frames.add_argument("--output-dir", "-o", type=Path, help="Directory for PNG frames")

    ev = sub.add_parser("eval", help="Evaluation harness")
    ev_sub = ev.add_subparsers(dest="eval_command")
    ev_sub.add_parser("setup", help="Create hosted evals and save their ids")
    ev_sub.add_parser("run", help="Generate artifacts and run the evals")
    ev_sub.add_parser("placeholders", help="Write placeholder dataset images")
    ev_sub.add_parser("test-images", help="Generate dataset images with the image model")

    return parser


def _read_script(path: Path) -> str:
    if str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def _run_eval(command: str | None, config) -> int:
    from campaignstudio.client import StudioClient
    from campaignstudio.evals import datasets, definitions, runner, store

    if command not in ("setup", "run", "placeholders", "test-images"):
        print("Error: choose one of setup, run, placeholders, test-images.", file=sys.stderr)
        return 1

    if command == "placeholders":
        written = datasets.generate_placeholders(config.evals.datasets_dir)
        print(f"Wrote {len(written)} placeholder images to {config.evals.datasets_dir}")
        return 0

    if not config.api_key:
        print("Error: OPENAI_API_KEY not set", file=sys.stderr)
        return 1
    client = StudioClient(config)

    if command == "setup":
        ids = definitions.create_evals(client.sdk, store.load_eval_ids(config.evals.ids_path))
        store.save_eval_ids(config.evals.ids_path, ids)
        print(f"Eval ids saved to {config.evals.ids_path}")
        print(json.dumps(ids, indent=2))
        return 0

    if command == "test-images":
        written = datasets.generate_test_images(
            client.sdk, config.evals.datasets_dir, model=config.models.image
        )
        print(f"Generated {len(written)} images in {config.evals.datasets_dir}")
        return 0

    summary = runner.run_evals(client)
    print()
    print("EVAL SUMMARY")
    for name, counts in summary.items():
        if counts:
            print(f"  {name}: {counts['passed']}/{counts['total']} passed")
        else:
            print(f"  {name}: skipped")
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    if args.config:
        config = load_config_file(args.config, base=config)

    if args.command == "serve":
        from campaignstudio.web import create_app
        host = args.host or config.host
        port = args.port or config.port
        app = create_app(config)
        print(f"Campaign Studio API: http://{host}:{port}")
        app.run(host=host, port=port, debug=False)
        return

    if args.command == "validate-script":
        result = validate_script(_read_script(args.script), args.seconds, args.tolerance)
        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print(format_validation_result(result))
        sys.exit(0 if result.valid else 1)

    if args.command == "sample-frames":
        from campaignstudio import ffutil
        ffutil.check_ffmpeg()
        extraction = ffutil.extract_frames(args.video, args.output_dir, count=args.count)
        print(f"Duration: {extraction.duration:.2f}s")
        for ts, frame in zip(extraction.timestamps, extraction.frames):
            print(f"  {ts:7.3f}s  {frame}")
        return

    if args.command == "eval":
        sys.exit(_run_eval(args.eval_command, config))
