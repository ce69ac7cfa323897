# Overview: Uniform JSON envelope for every API response.
#
# Shape: {"code": int, "message": str, "data": any}. code mirrors the HTTP
# status; 200/201 mean success, anything else is a failure.

from __future__ import annotations

import math

from flask import jsonify


def success(data=None, message: str = "OK"):
    return jsonify({"code": 200, "message": message, "data": data}), 200


def created(data=None, message: str = "Created"):
    return jsonify({"code": 201, "message": message, "data": data}), 201


def error(message: str = "Request failed", code: int = 400, data=None):
    return jsonify({"code": code, "message": message, "data": data}), code


def paginated(items: list, total: int, page: int, page_size: int, message: str = "OK", **extra):
    payload = {
        "list": items,
        "pagination": {
            "total": total,
            "page": page,
            "pageSize": page_size,
            "totalPages": math.ceil(total / page_size) if page_size else 0,
        },
    }
    payload.update(extra)
    return success(payload, message)


def from_exception(exc):
    """Render an OpsdeskError as an envelope."""
    return error(exc.message, exc.status_code, exc.data)
