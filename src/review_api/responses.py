"""
JSON responses serialized with orjson.
"""

from typing import Any

from fastapi.responses import JSONResponse
import orjson


class OrjsonResponse(JSONResponse):
    """JSONResponse whose body is rendered by orjson."""

    def render(self, content: Any) -> bytes:
        return orjson.dumps(content, option=orjson.OPT_NON_STR_KEYS)
