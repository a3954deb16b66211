"""
Pluggable OAuth 1.0 signature methods, looked up by the name carried
in the `oauth_signature_method` parameter.
"""
import base64
import hmac
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .canonical import percent_encode
from .errors import UnsupportedSignatureMethod


class SignatureMethod(ABC):
    """
    Brief

        Computes and checks signatures over a signature base string.
        The returned signature is NOT percent-encoded; encoding happens
        when the request is rendered.
    """

    name: str = ""

    @staticmethod
    def signing_key(consumer_secret: str, token_secret: Optional[str]) -> str:
        return percent_encode(consumer_secret) + "&" + percent_encode(token_secret or "")

    @abstractmethod
    def sign(self, base_string: str, consumer_secret: str, token_secret: Optional[str] = None) -> str:
        ...

    def verify(self, base_string: str, consumer_secret: str, token_secret: Optional[str], candidate: str) -> bool:
        if not candidate:
            return False
        expected = self.sign(base_string, consumer_secret, token_secret)
        return hmac.compare_digest(expected.encode("utf-8"), candidate.encode("utf-8"))

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"


class HmacSignatureMethod(SignatureMethod):
    digest = ""

    def sign(self, base_string: str, consumer_secret: str, token_secret: Optional[str] = None) -> str:
        key = self.signing_key(consumer_secret, token_secret)
        raw = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), self.digest).digest()
        return base64.b64encode(raw).decode("ascii")


class HmacSha1(HmacSignatureMethod):
    name = "HMAC-SHA1"
    digest = "sha1"


class HmacSha256(HmacSignatureMethod):
    name = "HMAC-SHA256"
    digest = "sha256"


class PlainText(SignatureMethod):
    """Sends the signing key itself. Only acceptable over TLS."""
    name = "PLAINTEXT"

    def sign(self, base_string: str, consumer_secret: str, token_secret: Optional[str] = None) -> str:
        return self.signing_key(consumer_secret, token_secret)


class SignatureMethodRegistry:
    """
    Maps signature method names to implementations. Lookups of names
    which were never registered are rejected, never downgraded.
    """

    def __init__(self, *methods: SignatureMethod):
        self._methods: Dict[str, SignatureMethod] = {}
        for method in methods:
            self.register(method)

    def register(self, method: SignatureMethod) -> "SignatureMethodRegistry":
        if not method.name:
            raise ValueError(f"{method!r} has no name")
        self._methods[method.name] = method
        return self

    def get(self, name: Optional[str]) -> SignatureMethod:
        if not name or name not in self._methods:
            raise UnsupportedSignatureMethod(name, self.names())
        return self._methods[name]

    def names(self) -> List[str]:
        return sorted(self._methods)

    def __contains__(self, name) -> bool:
        return name in self._methods


def default_registry() -> SignatureMethodRegistry:
    """HMAC-SHA1 and HMAC-SHA256. PLAINTEXT must be registered explicitly."""
    return SignatureMethodRegistry(HmacSha1(), HmacSha256())
