"""
Exception hierarchy shared by the signer, the verification server
and the API client.
"""
from typing import Optional


class ContextIOError(RuntimeError):
    """Root of all errors raised by this package."""


# ------------------------ OAuth 1.0 -------------------------

class OAuthError(ContextIOError):
    """
    Raised when a request cannot be signed or fails verification.
    Every subclass carries a stable `code` which is safe to return
    to remote callers.
    """
    code = "oauth_error"

    def __init__(self, what: str):
        super(OAuthError, self).__init__(what)
        self.what = what


class UnsupportedVersion(OAuthError):
    code = "unsupported_version"

    def __init__(self, version: str):
        super(UnsupportedVersion, self).__init__(f"OAuth version '{version}' not supported")
        self.version = version


class UnknownConsumer(OAuthError):
    code = "unknown_consumer"

    def __init__(self, consumer_key: Optional[str]):
        if consumer_key:
            what = f"Invalid consumer: {consumer_key}"
        else:
            what = "Missing consumer key"
        super(UnknownConsumer, self).__init__(what)
        self.consumer_key = consumer_key


class InvalidToken(OAuthError):
    code = "invalid_token"

    def __init__(self, token_type: str, token_key: Optional[str]):
        super(InvalidToken, self).__init__(f"Invalid {token_type} token: {token_key}")
        self.token_type = token_type
        self.token_key = token_key


class MissingTimestamp(OAuthError):
    code = "missing_timestamp"

    def __init__(self):
        super(MissingTimestamp, self).__init__("Missing timestamp parameter. The parameter is required")


class ExpiredTimestamp(OAuthError):
    code = "expired_timestamp"

    def __init__(self, timestamp: int, now: int):
        super(ExpiredTimestamp, self).__init__(f"Expired timestamp, yours {timestamp}, ours {now}")
        self.timestamp = timestamp
        self.now = now


class MissingNonce(OAuthError):
    code = "missing_nonce"

    def __init__(self):
        super(MissingNonce, self).__init__("Missing nonce parameter. The parameter is required")


class NonceReplay(OAuthError):
    code = "nonce_replay"

    def __init__(self, nonce: str):
        super(NonceReplay, self).__init__(f"Nonce already used: {nonce}")
        self.nonce = nonce


class UnsupportedSignatureMethod(OAuthError):
    code = "unsupported_signature_method"

    def __init__(self, method: Optional[str], supported=()):
        if not method:
            what = "No signature method parameter. This parameter is required"
        else:
            what = f"Signature method '{method}' not supported"
        if supported:
            what += f", try one of the following: {', '.join(supported)}"
        super(UnsupportedSignatureMethod, self).__init__(what)
        self.method = method


class InvalidSignature(OAuthError):
    code = "invalid_signature"

    def __init__(self):
        super(InvalidSignature, self).__init__("Invalid signature")


class MalformedParameters(OAuthError):
    code = "malformed_parameters"


# ------------------------ Transport -------------------------

class TransportError(ContextIOError):
    """Network level failure. The request may not have reached the server."""

    def __init__(self, method: str, url: str, cause: Exception):
        super(TransportError, self).__init__(f"HTTP call failed: {method} {url}: {cause}")
        self.method = method
        self.url = url
        self.cause = cause


class HTTPStatusError(ContextIOError):
    """The server answered, but with an error status or an unexpected content type."""

    def __init__(self, response):
        what = f"HTTP {response.status_code}"
        if response.content_type:
            what += f" ({response.content_type})"
        message = response.error_message()
        if message:
            what += f": {message}"
        super(HTTPStatusError, self).__init__(what)
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code


# ---------------------- Client arguments --------------------

class InvalidArgumentError(ContextIOError, ValueError):
    """Raised by resource methods before any request is built."""


class ConfigError(ContextIOError):
    def __init__(self, what: str, path: Optional[str] = None):
        if path:
            what = f"{path}: {what}"
        super(ConfigError, self).__init__(what)
        self.path = path
