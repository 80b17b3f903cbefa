"""Flask application factory for the Campaign Studio API."""

import logging
import time

from flask import Flask, g, jsonify, request

from campaignstudio.client import StudioClient
from campaignstudio.config import StudioConfig, load_config

logger = logging.getLogger(__name__)


def create_app(
    config: StudioConfig | None = None, client: StudioClient | None = None
) -> Flask:
    app = Flask(__name__)
    config = config or load_config()
    app.config["STUDIO"] = config
    # Two image uploads per blend request; per-file limits are checked in the route
    app.config["MAX_CONTENT_LENGTH"] = max(config.max_json_bytes, 2 * config.max_upload_bytes)
    if client is not None:
        app.extensions["studio_client"] = client

    from campaignstudio.web.routes import bp
    app.register_blueprint(bp)

    @app.before_request
    def log_request():
        g.started = time.monotonic()
        logger.info("[request] %s %s", request.method, request.path)

    @app.after_request
    def log_response(response):
        elapsed_ms = (time.monotonic() - g.get("started", time.monotonic())) * 1000
        logger.info(
            "[response] %s %s %s (%.0fms)",
            request.method, request.path, response.status_code, elapsed_ms,
        )
        return response

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"message": "File too large"}), 400

    return app
