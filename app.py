from models.base import init_engine_and_session, Base
import os
import logging
from logging.handlers import RotatingFileHandler

import click
from flask import Flask, jsonify, current_app
from dotenv import load_dotenv
from sqlalchemy import text

from models import schema  # noqa: F401 - register tables on Base.metadata
from services.datetimex import APP_TZ, parse_iso_to_utc

# --- Load .env exactly once, here ---
# If you run "python app.py", this ensures variables are loaded.
# If you use "flask run", Flask will also load .env automatically (when python-dotenv is installed).
load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in ("1", "true", "yes", "on")


def _configure_logging(app: Flask) -> None:
    # default on in containers
    log_to_stdout = _env_bool("LOG_TO_STDOUT", True)
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    if log_to_stdout:
        handler = logging.StreamHandler()
    else:
        log_dir = os.path.join(os.path.dirname(__file__), "log")
        try:
            os.makedirs(log_dir, exist_ok=True)
            handler = RotatingFileHandler(
                os.path.join(log_dir, "app.log"),
                maxBytes=5 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
        except OSError:
            # If file logging fails (e.g., in a container), fall back to stdout
            handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    ))

    # avoid duplicate handlers on reload
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    app.logger.setLevel(logging.INFO)


def create_app(test_config: dict | None = None):
    app = Flask(__name__, instance_relative_config=True)

    APP_ENV = os.getenv("APP_ENV", "development").lower()
    app.config.from_mapping(
        APP_ENV=APP_ENV,
        AUTO_CREATE_SCHEMA=_env_bool("AUTO_CREATE_SCHEMA", True),
        DISPLAY_TZ=APP_TZ.key,
    )
    if test_config:
        app.config.update(test_config)

    _configure_logging(app)

    # ---- DB init ----
    engine, _Session = init_engine_and_session()
    if app.config["AUTO_CREATE_SCHEMA"]:
        Base.metadata.create_all(engine, checkfirst=True)

    # ---- CLI ----
    @app.cli.command("init-db")
    def init_db_command():
        """Create any missing tables."""
        eng, _ = init_engine_and_session()
        Base.metadata.create_all(eng, checkfirst=True)
        click.echo("schema ready")

    @app.cli.command("preview-receipt")
    @click.option("--at", "at", required=True, help="ATA/ATD instant, ISO-8601")
    @click.option("--type", "flight_type", type=click.Choice(["DOM", "INT"]), default="DOM")
    def preview_receipt_command(at, flight_type):
        """Show the next receipt number for a flight without reserving it."""
        from models.receipt_counter_store import preview_next_receipt_no
        ref = parse_iso_to_utc(at)
        if ref is None:
            raise click.BadParameter(f"not a timestamp: {at}", param_hint="--at")
        click.echo(preview_next_receipt_no(ref, flight_type))

    # ---- Probes ----
    @app.get("/healthz")
    def healthz():
        # Liveness: process is up, Flask can serve a simple request
        return jsonify(status="ok"), 200

    @app.get("/readyz")
    def readyz():
        # Readiness: app can talk to the DB
        try:
            engine, _ = init_engine_and_session()
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return jsonify(status="ok"), 200
        except Exception as e:
            current_app.logger.exception("Readiness check failed")
            return jsonify(status="error", error=str(e)), 500

    app.logger.info("billing app ready (env=%s, tz=%s)", APP_ENV, APP_TZ.key)
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=8000, debug=(
        app.config["APP_ENV"] != "production"))
