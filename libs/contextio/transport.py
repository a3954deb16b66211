"""
Blocking HTTP transport used by the API client.
"""
import dataclasses as dc
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from .errors import TransportError

logger = logging.getLogger("contextio.client")


@dc.dataclass
class TransportResponse:
    status_code: int
    headers: Dict[str, str] = dc.field(default_factory=dict)
    content: bytes = b""

    @property
    def content_type(self) -> str:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return ""


class HttpTransport(ABC):

    @abstractmethod
    def send(self,
             method: str,
             url: str,
             headers: Dict[str, str],
             body: Optional[Any] = None,
             files: Optional[Dict[str, Any]] = None,
             timeout: Optional[float] = None) -> TransportResponse:
        ...


class RequestsTransport(HttpTransport):

    def __init__(self, session: Optional[requests.Session] = None, verify: bool = True):
        self.session = session or requests.Session()
        self.verify = verify

    def send(self, method, url, headers, body=None, files=None, timeout=None):
        logger.debug(f"[HTTP] {method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                data=body,
                files=files,
                timeout=timeout,
                verify=self.verify)
        except requests.RequestException as e:
            logger.error(f"[HTTP] {method} {url} failed: {e}")
            raise TransportError(method, url, e) from e
        logger.debug(f"[HTTP] {method} {url} -> {response.status_code}")
        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content)
