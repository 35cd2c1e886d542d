from __future__ import annotations
import json, logging
from datetime import datetime

from flask import g, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers.response import Response

from . import bp
from .responses import pydantic_errors_safe

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("event", "path", "method", "status", "duration_ms", "count", "skipped", "applied"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, ensure_ascii=False)

def _setup_structured_logging(app):
    logger = app.logger
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

@bp.before_app_request
def _start_timer():
    g._req_start = datetime.utcnow()

@bp.after_app_request
def _log_request(response: Response):
    start = getattr(g, "_req_start", None)
    duration_ms = int((datetime.utcnow() - start).total_seconds() * 1000) if start else None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
    }
    logging.getLogger().info("request handled", extra=extra)
    return response

@bp.app_errorhandler(ValidationError)
def _handle_validation_error(ve: ValidationError):
    return jsonify({"error": "validation_error", "detail": pydantic_errors_safe(ve)}), 422

@bp.app_errorhandler(HTTPException)
def _handle_http_error(err: HTTPException):
    # todas las respuestas de la API son JSON, también 400/404/405
    code = (err.name or "error").upper().replace(" ", "_")
    return jsonify({"ok": False, "errors": [{"code": code, "details": err.description}]}), err.code

@bp.record_once
def _on_register(state):
    app = state.app
    _setup_structured_logging(app)

@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": datetime.utcnow().isoformat(timespec="seconds") + "Z",
    })
