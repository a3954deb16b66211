"""
Collaborators of the verification server: consumer, token and nonce
stores. The abstract classes define the contract. The in-memory
implementations serve tests and the mock provider.
"""
import logging
import secrets
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, Optional, Tuple

from .errors import InvalidToken
from .tokens import ConsumerToken, TokenCredential, TokenType

logger = logging.getLogger("contextio.oauth")


class ConsumerStore(ABC):

    @abstractmethod
    def lookup_consumer(self, consumer_key: str) -> Optional[ConsumerToken]:
        ...


class TokenStore(ABC):

    @abstractmethod
    def lookup_token(self,
                     consumer: ConsumerToken,
                     token_type: TokenType,
                     token_key: Optional[str]) -> Optional[TokenCredential]:
        ...

    def new_request_token(self, consumer: ConsumerToken, callback: Optional[str]) -> TokenCredential:
        raise NotImplementedError(f"{type(self).__name__} does not issue request tokens")

    def new_access_token(self,
                         request_token: TokenCredential,
                         consumer: ConsumerToken,
                         verifier: Optional[str]) -> TokenCredential:
        raise NotImplementedError(f"{type(self).__name__} does not issue access tokens")


class NonceStore(ABC):

    @abstractmethod
    def check_and_record(self,
                         consumer: ConsumerToken,
                         token: Optional[TokenCredential],
                         nonce: str,
                         timestamp: int) -> bool:
        """
        Record the tuple and return True if it had been recorded before.
        Implementations MUST perform check and insert as one atomic step,
        otherwise two concurrent requests carrying the same nonce can both
        be accepted.
        """
        ...


class MemoryConsumerStore(ConsumerStore):

    def __init__(self, consumers: Iterable[ConsumerToken] = ()):
        self._consumers: Dict[str, ConsumerToken] = {c.key: c for c in consumers}

    def add(self, consumer: ConsumerToken):
        self._consumers[consumer.key] = consumer

    def lookup_consumer(self, consumer_key: str) -> Optional[ConsumerToken]:
        return self._consumers.get(consumer_key)


class MemoryTokenStore(TokenStore):
    """
    Keeps tokens per (consumer key, token type, token key). Request
    tokens must be authorized (which yields the oauth_verifier) before
    they can be exchanged for an access token.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens: Dict[Tuple[str, TokenType, str], TokenCredential] = {}
        self._callbacks: Dict[str, Optional[str]] = {}
        self._verifiers: Dict[str, str] = {}

    def add(self, consumer: ConsumerToken, token_type: TokenType, token: TokenCredential):
        with self._lock:
            self._tokens[(consumer.key, token_type, token.key)] = token

    def lookup_token(self, consumer, token_type, token_key):
        if not token_key:
            return None
        with self._lock:
            return self._tokens.get((consumer.key, token_type, token_key))

    def new_request_token(self, consumer, callback):
        token = TokenCredential(secrets.token_hex(16), secrets.token_hex(16))
        with self._lock:
            self._tokens[(consumer.key, TokenType.REQUEST, token.key)] = token
            self._callbacks[token.key] = callback
        logger.info(f"[TOKEN] Issued request token {token.key} for consumer={consumer.key}")
        return token

    def authorize(self, consumer: ConsumerToken, request_token_key: str) -> str:
        """Mark a request token as approved by the user and return its verifier."""
        with self._lock:
            if (consumer.key, TokenType.REQUEST, request_token_key) not in self._tokens:
                raise InvalidToken(TokenType.REQUEST.value, request_token_key)
            verifier = secrets.token_hex(8)
            self._verifiers[request_token_key] = verifier
        return verifier

    def callback_for(self, request_token_key: str) -> Optional[str]:
        with self._lock:
            return self._callbacks.get(request_token_key)

    def new_access_token(self, request_token, consumer, verifier):
        with self._lock:
            expected = self._verifiers.get(request_token.key)
            if expected is None or verifier is None or not secrets.compare_digest(expected, verifier):
                raise InvalidToken(TokenType.REQUEST.value, request_token.key)
            # A request token can be exchanged once.
            del self._tokens[(consumer.key, TokenType.REQUEST, request_token.key)]
            del self._verifiers[request_token.key]
            self._callbacks.pop(request_token.key, None)
            token = TokenCredential(secrets.token_hex(16), secrets.token_hex(16))
            self._tokens[(consumer.key, TokenType.ACCESS, token.key)] = token
        logger.info(f"[TOKEN] Issued access token {token.key} for consumer={consumer.key}")
        return token


class MemoryNonceStore(NonceStore):
    """
    Remembers (consumer, token, nonce, timestamp) tuples until their
    timestamp is older than `retention` seconds. The retention must be at
    least the server's timestamp threshold, or replays become possible.
    """

    def __init__(self, retention: int = 600, clock: Callable[[], float] = time.time):
        self.retention = retention
        self.clock = clock
        self._lock = threading.Lock()
        self._seen: Dict[Tuple[str, Optional[str], str, int], int] = {}

    def check_and_record(self, consumer, token, nonce, timestamp):
        key = (consumer.key, token.key if token is not None else None, nonce, int(timestamp))
        with self._lock:
            self._prune()
            if key in self._seen:
                return True
            self._seen[key] = int(timestamp)
            return False

    def _prune(self):
        horizon = self.clock() - self.retention
        stale = [key for key, timestamp in self._seen.items() if timestamp < horizon]
        for key in stale:
            del self._seen[key]

    def __len__(self):
        with self._lock:
            return len(self._seen)
