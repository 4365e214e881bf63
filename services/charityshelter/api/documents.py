"""Request document helpers shared by the admin routers.

Request bodies follow the ``{"data": {"attributes": {...}}}`` shape. Any
level that is present but not an object is a 422, never a handler crash.
"""

from typing import Any

from fastapi import HTTPException


def document_data(body: Any) -> dict:
    """Return the ``data`` object of a request document."""
    if not isinstance(body, dict):
        raise HTTPException(status_code=422, detail="Request body must be an object")
    data = body.get("data", {})
    if not isinstance(data, dict):
        raise HTTPException(status_code=422, detail="'data' must be an object")
    return data


def document_attributes(body: Any) -> dict:
    """Return ``data.attributes`` of a request document, ``{}`` when absent."""
    attrs = document_data(body).get("attributes", {})
    if attrs is None:
        return {}
    if not isinstance(attrs, dict):
        raise HTTPException(status_code=422, detail="'data.attributes' must be an object")
    return attrs
