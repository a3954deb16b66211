"""
Key/secret pairs which identify the actors of an OAuth 1.0 exchange.
"""
import dataclasses as dc
from enum import Enum

from .errors import MalformedParameters


class TokenType(Enum):
    REQUEST = "request"
    ACCESS = "access"


def _check_pair(kind: str, key, secret):
    if not isinstance(key, str) or not key:
        raise MalformedParameters(f"{kind} key must be a non-empty string")
    if not isinstance(secret, str):
        raise MalformedParameters(f"{kind} secret must be a string")


@dc.dataclass(frozen=True)
class ConsumerToken:
    """
    Represents the calling application. The key/secret pair is
    issued by the provider when the application is registered.
    """
    key: str
    secret: str = dc.field(repr=False)

    def __post_init__(self):
        _check_pair("Consumer", self.key, self.secret)


@dc.dataclass(frozen=True)
class TokenCredential:
    """
    Represents a delegated-access grant of a single user. Absent
    (None) in two-legged flows.
    """
    key: str
    secret: str = dc.field(repr=False)

    def __post_init__(self):
        _check_pair("Token", self.key, self.secret)


# Tokens exchanged during the three-legged handshake.
RequestToken = TokenCredential
AccessToken = TokenCredential
