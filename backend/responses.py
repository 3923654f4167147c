"""Default JSON response class: no ``password`` key ever leaves the API."""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

SECRET_KEYS = frozenset({"password"})


def strip_secrets(content: Any) -> Any:
    if isinstance(content, dict):
        return {k: strip_secrets(v) for k, v in content.items() if k not in SECRET_KEYS}
    if isinstance(content, (list, tuple)):
        return [strip_secrets(v) for v in content]
    return content


class PublicJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:
        return super().render(strip_secrets(content))
