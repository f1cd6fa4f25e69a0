# Overview: Turn service Results into JSON responses.

from __future__ import annotations

from flask import jsonify

from .results import Result


def _serialize(value):
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    return value


def respond(result: Result, *, status: int = 200, key: str | None = None):
    """
    Ok  -> `status` with the serialized value (wrapped under `key` if given)
    Err -> the error kind's HTTP status with {"error", "message", "details"}
    """
    if not result.ok:
        return jsonify(result.error.to_dict()), result.error.http_status
    body = _serialize(result.value)
    if key:
        body = {key: body}
    return jsonify(body), status


def validation_failed(exc: Exception):
    return jsonify({"error": "VALIDATION", "message": str(exc), "details": {}}), 400


def internal_error():
    return jsonify({"error": "Internal server error"}), 500
