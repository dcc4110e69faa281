"""Flask HTTP API: per-source snapshots, an all-sources overview, and health."""

import logging

from flask import Flask, jsonify, request

from logstream.config import Config
from logstream.parser import now_iso
from logstream.registry import SourceRegistry, UnknownSourceError
from logstream.snapshot import read_snapshot

logger = logging.getLogger(__name__)


def create_app(registry: SourceRegistry, hub=None, config: Config | None = None) -> Flask:
    """Flask application factory."""
    config = config or Config()
    app = Flask(__name__)

    @app.route("/api/logs/<log_type>")
    def get_logs(log_type):
        try:
            source = registry.get(log_type)
        except UnknownSourceError:
            return jsonify({"error": "Log type not found"}), 404
        limit = request.args.get("limit", config.snapshot_limit, type=int)
        return jsonify([r.to_dict() for r in read_snapshot(source, limit)])

    @app.route("/api/logs")
    def get_all_logs():
        return jsonify({
            source.name: [r.to_dict() for r in read_snapshot(source, config.overview_limit)]
            for source in registry
        })

    @app.route("/health")
    def health():
        return jsonify({
            "status": "healthy",
            "timestamp": now_iso(),
            "logPaths": registry.paths(),
            "subscribers": hub.subscriber_count if hub is not None else 0,
        })

    @app.errorhandler(500)
    def internal_error(error):
        logger.error("Error handling %s: %s", request.path, getattr(error, "original_exception", error))
        return jsonify({"error": "Internal server error"}), 500

    return app


def run_http(app: Flask, host: str, port: int):
    """Run the Flask app (intended for use in a daemon thread)."""
    app.run(host=host, port=port, use_reloader=False)
