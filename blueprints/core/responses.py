from __future__ import annotations
from typing import Any, Iterable

from flask import jsonify
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError


def ok(data: Any, status: int = 200):
    return jsonify(data), status

def created(location: str, data: Any):
    resp = jsonify(data)
    resp.status_code = 201
    resp.headers["Location"] = location
    return resp

def error(msg: str, status: int = 400, code: str | None = None, field: str | None = None):
    payload = {"error": msg}
    if code: payload["code"] = code
    if field: payload["field"] = field
    return jsonify(payload), status

def business_error(code: str, details: Any = None, status: int = 409, **extra):
    # errores de negocio: {"ok": false, "errors": [{code, details}]}
    return jsonify({"ok": False, "errors": [{"code": code, "details": details}], **extra}), status

def business_errors(errors: Iterable[dict], status: int = 409):
    return jsonify({"ok": False, "errors": list(errors)}), status

def handle_integrity_error(ex: IntegrityError):
    return error("Unique constraint violation", status=409, code="UNIQUE_CONSTRAINT")

def pydantic_errors_safe(ve: ValidationError):
    errs = ve.errors()
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        e.pop("url", None)
    return errs
