"""Result payloads shared by the MCP tools."""

from typing import Any


def error_result(text: str, kind: str | None = None) -> dict[str, Any]:
    """An ``isError`` tool result; ``kind`` names the domain failure when there is one."""
    result: dict[str, Any] = {
        "isError": True,
        "content": [{"type": "text", "text": text}],
    }
    if kind is not None:
        result["data"] = {"error": kind}
    return result


def text_result(text: str, **data: Any) -> dict[str, Any]:
    """A successful tool result with a message and structured data."""
    return {"content": [{"type": "text", "text": text}], "data": data}
