from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .container import build_container
from .core.exceptions import (
    DomainError,
    InvalidStateError,
    NotFoundError,
    NotReadyError,
    PersistenceError,
    PreconditionError,
    ValidationError,
)
from .database.bootstrap import apply_schema, list_tables
from .identity.controller import register as register_identity
from .realtime.controller import register as register_views
from .workflow.controller import register as register_workflow

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (InvalidStateError, 409),
    (PreconditionError, 422),
    (NotReadyError, 503),
    (PersistenceError, 502),
)


def _status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    db_config = getattr(settings, "DB_CONFIG")
    store_backend = getattr(settings, "STORE_BACKEND", "memory")
    app.logger.info("settings=%s store=%s", settings_module, store_backend)

    if store_backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        app.logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(
        org_id=getattr(settings, "ORG_ID", "default-org"),
        store_backend=store_backend,
        db_config=db_config,
        poll_seconds=float(getattr(settings, "STORE_POLL_SECONDS", 0)),
        session_idle_seconds=float(getattr(settings, "VIEW_SESSION_IDLE_SECONDS", 0)),
    )
    app.extensions["pto_tracker"] = container

    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        return jsonify({"error": str(error) or type(error).__name__}), _status_for(error)

    register_identity(app, container)
    register_workflow(app, container)
    register_views(app, container)

    return app
