import json
from typing import Any, Dict, List, Optional

DEFAULT_ACCEPTABLE_CONTENT_TYPES = ("application/json",)
ANY_CONTENT_TYPE = "*/*"


class ContextIOResponse:
    """
    A response of the Context.IO API. JSON bodies are decoded lazily
    through `data`; everything else is available as `content`/`text`.
    """

    def __init__(self,
                 status_code: int,
                 headers: Optional[Dict[str, str]] = None,
                 content_type: str = "",
                 content: bytes = b"",
                 acceptable_content_types: Optional[List[str]] = None):
        self.status_code = status_code
        self.headers = headers or {}
        self.content_type = content_type.split(";")[0].strip().lower()
        self.content = content
        self.acceptable_content_types = [
            t.lower() for t in (acceptable_content_types or DEFAULT_ACCEPTABLE_CONTENT_TYPES)]
        self._data = None
        self._decoded = False

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def data(self) -> Any:
        if not self._decoded:
            self._decoded = True
            if self.content_type == "application/json" and self.content:
                try:
                    self._data = json.loads(self.text)
                except ValueError:
                    self._data = None
            else:
                self._data = None
        return self._data

    def has_error(self) -> bool:
        if self.status_code < 200 or self.status_code >= 300:
            return True
        if ANY_CONTENT_TYPE in self.acceptable_content_types:
            return False
        return self.content_type not in self.acceptable_content_types

    def error_message(self) -> Optional[str]:
        data = self.data
        if isinstance(data, dict):
            for key in ("value", "message", "error"):
                if isinstance(data.get(key), str):
                    return data[key]
        if self.content and self.content_type.startswith("text/"):
            return self.text[:200]
        return None

    def __repr__(self):
        return f"<ContextIOResponse {self.status_code} {self.content_type}>"
