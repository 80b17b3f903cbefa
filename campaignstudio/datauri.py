"""Base64 data-URL conversion and Responses API text extraction."""

import base64
import binascii
import re
from typing import Any

from campaignstudio.models import ImagePayload

DATA_URL_PATTERN = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,(.+)$", re.DOTALL)


def parse_data_url(value: Any) -> ImagePayload | None:
    """Decode ``data:image/<type>;base64,<payload>``; return None if malformed."""
    if not isinstance(value, str):
        return None
    m = DATA_URL_PATTERN.match(value)
    if not m:
        return None
    mime, payload = m.groups()
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    ext = mime.split("/", 1)[1].split("+")[0]
    return ImagePayload(mime=mime, data=data, name=f"image.{ext}")


def to_data_url(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def _get(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def extract_output_text(response: Any) -> str:
    """Return the text output of a Responses API result.

    Works with SDK response objects and plain dicts.
    """
    if not response:
        return ""
    text = _get(response, "output_text")
    if isinstance(text, str):
        return text
    for item in _get(response, "output") or []:
        for content in _get(item, "content") or []:
            if _get(content, "type") == "output_text" and isinstance(_get(content, "text"), str):
                return _get(content, "text")
    return ""
