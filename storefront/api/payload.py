"""Read form, multipart or JSON request bodies into plain field and file maps."""

import json
from dataclasses import dataclass, field
from typing import Any

from fastapi import Request
from starlette.datastructures import UploadFile

from storefront.core.errors import FieldValidationError

FORM_CONTENT_TYPES = frozenset({"multipart/form-data", "application/x-www-form-urlencoded"})


@dataclass
class RequestPayload:
    """Text fields (a list when a form key repeats) and uploaded files by field name."""

    fields: dict[str, Any] = field(default_factory=dict)
    files: dict[str, UploadFile] = field(default_factory=dict)


def _content_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";")[0].strip().lower()


async def _read(request: Request) -> RequestPayload:
    content_type = _content_type(request)
    if content_type == "application/json":
        raw = await request.body()
        if not raw.strip():
            return RequestPayload()
        try:
            body = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FieldValidationError(f"Invalid JSON: {e!s}") from e
        if not isinstance(body, dict):
            raise FieldValidationError("JSON body must be an object.")
        return RequestPayload(fields=body)
    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        payload = RequestPayload()
        for key in dict.fromkeys(form.keys()):
            values = form.getlist(key)
            texts = [v for v in values if isinstance(v, str)]
            uploads = [v for v in values if isinstance(v, UploadFile)]
            if uploads:
                payload.files[key] = uploads[0]
            if texts:
                payload.fields[key] = texts[0] if len(texts) == 1 else texts
        return payload
    return RequestPayload()


async def read_payload(request: Request) -> RequestPayload:
    """Parse the body once per request; later callers get the cached result."""
    cached = getattr(request.state, "payload", None)
    if cached is not None:
        return cached
    payload = await _read(request)
    request.state.payload = payload
    return payload
