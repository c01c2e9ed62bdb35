"""Helpers for turning Dropbox API error responses into readable summaries.

Dropbox reports failures as a tagged union, for example::

    {"error_summary": "path/not_found/..",
     "error": {".tag": "path", "path": {".tag": "not_found"}}}

The union is flattened into ``path/not_found/``, the same form the server
uses for ``error_summary`` minus its trailing disambiguation dots.
"""

from __future__ import annotations

from typing import Any

import requests


def error_tag_path(error: Any) -> str | None:
    """Flatten a nested Dropbox error union into ``tag/subtag/`` form."""
    tags = []
    while isinstance(error, dict) and isinstance(error.get(".tag"), str):
        tag = error[".tag"]
        tags.append(tag)
        error = error.get(tag)
    if not tags:
        return None
    return "/".join(tags) + "/"


def extract_error_detail(response: requests.Response) -> str | None:
    """Extract error detail from an HTTP error response."""
    try:
        payload: Any = response.json()
    except ValueError:
        return response.text or None

    if not isinstance(payload, dict):
        return str(payload)

    tag_path = error_tag_path(payload.get("error"))
    if tag_path:
        return tag_path

    summary = payload.get("error_summary")
    if isinstance(summary, str) and summary:
        return summary.rstrip(".")

    return str(payload)
