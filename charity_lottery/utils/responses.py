"""Helpers for consistent JSON response schema."""

from __future__ import annotations

from typing import Any

from flask import Response, jsonify

from charity_lottery.errors import AppError


def ok(data: Any, status_code: int = 200) -> tuple[Response, int]:
    """Success response."""

    return jsonify({"success": True, "data": data, "error": None}), status_code


def fail(code: str, message: str, status_code: int, details: Any | None = None) -> tuple[Response, int]:
    """Error response."""

    body = {"success": False, "data": None, "error": {"code": code, "message": message, "details": details}}
    return jsonify(body), status_code


def fail_with(error: AppError) -> tuple[Response, int]:
    return fail(error.code, error.message, error.status_code, error.details)
