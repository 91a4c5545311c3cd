# lectern/utils/errors.py
"""
JSON error bodies for the /api/bible endpoints.

Every failure response has the shape
    {"error": "<snake_case_code>", "detail": "<message>", ...extra fields}
so the reader UI can branch on the code and show the detail.
"""

from typing import Optional

from flask import jsonify


def error_response(code: str, status: int = 400, detail: Optional[str] = None, **extra):
    """
    Build a (response, status) pair for a failed request.

    Extra keyword fields are merged into the body as-is; detail is
    omitted when empty.
    """
    body = {"error": code}
    if detail:
        body["detail"] = detail
    body.update(extra)
    return jsonify(body), status


# 400

def validation_error(code: str, detail: Optional[str] = None):
    return error_response(code, 400, detail)


def missing_field(name: str):
    """A required query parameter was not supplied."""
    return error_response(f"{name}_required", 400, f"Query parameter '{name}' is required")


def unknown_book(name: str):
    """Book name is outside the 66-book canon."""
    return error_response("unknown_book", 400, f"Unknown book: {name}", book=name)


# 500

def server_error(code: str = "internal_error", detail: Optional[str] = None):
    return error_response(code, 500, detail)


# 502

def upstream_error(error):
    """
    Report a failed upstream call.

    A rejected API key (401/403) is reported as upstream_forbidden so it
    can be told apart from a transient outage.
    """
    body = error.to_dict()
    code = body.pop("error")
    detail = body.pop("detail", None)
    return error_response(code, 502, detail, **body)
