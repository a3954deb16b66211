"""
Provider-side verification of OAuth 1.0 signed requests.

A request passes through these checks, in order, and is rejected with a
typed OAuthError at the first one that fails:

    version -> consumer -> token -> timestamp -> nonce present
      -> signature method -> signature -> nonce unused (recorded)

The nonce store is written only for requests which pass every other
check, so a forged request cannot burn a legitimate nonce.
"""
import dataclasses as dc
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl

from .canonical import Pair, OAUTH_PARAM_PREFIX, parse_authorization_header, signature_base_string, split_url
from .errors import \
    OAuthError, \
    UnsupportedVersion, \
    UnknownConsumer, \
    InvalidToken, \
    MissingTimestamp, \
    ExpiredTimestamp, \
    MissingNonce, \
    NonceReplay, \
    InvalidSignature, \
    MalformedParameters
from .request import OAUTH_VERSION, FORM_CONTENT_TYPE
from .signature import SignatureMethodRegistry, default_registry
from .stores import ConsumerStore, TokenStore, NonceStore, MemoryNonceStore
from .tokens import ConsumerToken, TokenCredential, TokenType

logger = logging.getLogger("contextio.oauth")

# Reference freshness window for oauth_timestamp, in seconds.
DEFAULT_TIMESTAMP_THRESHOLD = 300


@dc.dataclass
class InboundRequest:
    """
    An incoming request reduced to what verification needs. `url` may
    still carry its query string; its parameters are part of `params`
    only if they were added explicitly (see `from_parts`).
    """
    method: str
    url: str
    params: List[Pair] = dc.field(default_factory=list)

    @classmethod
    def from_parts(cls,
                   method: str,
                   url: str,
                   headers: Optional[Dict[str, str]] = None,
                   body: Optional[str] = None,
                   content_type: Optional[str] = None) -> "InboundRequest":
        """
        Collect the parameters of an HTTP request: the Authorization
        header, the URL query and a form-urlencoded body.
        """
        params: List[Pair] = []
        authorization = None
        for name, value in (headers or {}).items():
            if name.lower() == "authorization":
                authorization = value
            elif name.lower() == "content-type" and content_type is None:
                content_type = value
        if authorization and authorization[:6].lower() == "oauth ":
            params.extend(parse_authorization_header(authorization).items())
        normalized_url, query_pairs = split_url(url)
        params.extend(query_pairs)
        if body and content_type and content_type.split(";")[0].strip().lower() == FORM_CONTENT_TYPE:
            if isinstance(body, bytes):
                try:
                    body = body.decode("utf-8")
                except UnicodeDecodeError:
                    raise MalformedParameters("Form body is not valid UTF-8")
            params.extend(parse_qsl(body, keep_blank_values=True))
        return cls(method=method.upper(), url=normalized_url, params=params)

    def get(self, name: str) -> Optional[str]:
        values = [value for key, value in self.params if key == name]
        if not values:
            return None
        if len(values) > 1 and name.startswith(OAUTH_PARAM_PREFIX):
            raise MalformedParameters(f"Parameter '{name}' appears more than once")
        return values[0]


@dc.dataclass
class Verification:
    """Result of `OAuthServer.verify_inbound_request`."""
    consumer: Optional[ConsumerToken] = None
    token: Optional[TokenCredential] = None
    error: Optional[OAuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class OAuthServer:

    def __init__(self,
                 consumers: ConsumerStore,
                 tokens: Optional[TokenStore] = None,
                 nonces: Optional[NonceStore] = None, *,
                 registry: Optional[SignatureMethodRegistry] = None,
                 timestamp_threshold: int = DEFAULT_TIMESTAMP_THRESHOLD,
                 clock: Callable[[], float] = time.time):
        """
        Brief

            Verifies signed requests against the given stores.

        Arguments

            `consumers`: Resolves oauth_consumer_key.

            `tokens`: Resolves oauth_token. Required for three-legged
              verification and for the token endpoints.

            `nonces`: Replay protection. Defaults to an in-memory store,
              which only protects a single process.

            `registry`: Accepted signature methods. Defaults to HMAC-SHA1
              and HMAC-SHA256.

            `timestamp_threshold`: Maximum allowed distance, in seconds,
              between oauth_timestamp and the server clock.
        """
        self.consumers = consumers
        self.tokens = tokens
        self.nonces = nonces if nonces is not None else MemoryNonceStore(
            retention=2 * timestamp_threshold, clock=clock)
        self.registry = registry or default_registry()
        self.timestamp_threshold = timestamp_threshold
        self.clock = clock

    # ------------------------- Entry points -------------------------

    def verify_request(self,
                       request: InboundRequest,
                       token_type: Optional[TokenType] = TokenType.ACCESS
                       ) -> Tuple[ConsumerToken, Optional[TokenCredential]]:
        """
        Verify an API call. With `token_type=None` the request may be
        two-legged; an oauth_token, if present, is then resolved as an
        access token.
        """
        self.check_version(request)
        consumer = self.get_consumer(request)
        token = None
        if token_type is not None:
            token = self.get_token(request, consumer, token_type)
        elif request.get("oauth_token"):
            token = self.get_token(request, consumer, TokenType.ACCESS)
        self.check_signature(request, consumer, token)
        logger.info(f"[VERIFY] ✓ {request.method} {request.url} consumer={consumer.key}")
        return consumer, token

    def verify_inbound_request(self,
                               request: InboundRequest,
                               token_type: Optional[TokenType] = TokenType.ACCESS) -> Verification:
        """Like `verify_request`, but reports rejection as a value."""
        try:
            consumer, token = self.verify_request(request, token_type)
        except OAuthError as e:
            logger.warning(f"[VERIFY] Rejected {request.method} {request.url}: {e.code}: {e}")
            return Verification(error=e)
        return Verification(consumer=consumer, token=token)

    def fetch_request_token(self, request: InboundRequest) -> TokenCredential:
        """Temporary credentials request. No token is involved yet."""
        tokens = self._require_tokens()
        self.check_version(request)
        consumer = self.get_consumer(request)
        self.check_signature(request, consumer, None)
        return tokens.new_request_token(consumer, request.get("oauth_callback"))

    def fetch_access_token(self, request: InboundRequest) -> TokenCredential:
        """Exchange an authorized request token (plus verifier) for an access token."""
        tokens = self._require_tokens()
        self.check_version(request)
        consumer = self.get_consumer(request)
        token = self.get_token(request, consumer, TokenType.REQUEST)
        self.check_signature(request, consumer, token)
        return tokens.new_access_token(token, consumer, request.get("oauth_verifier"))

    # ---------------------------- Steps ----------------------------

    def check_version(self, request: InboundRequest) -> str:
        # Providers must assume 1.0 if the parameter is absent.
        version = request.get("oauth_version") or OAUTH_VERSION
        if version != OAUTH_VERSION:
            raise UnsupportedVersion(version)
        return version

    def get_consumer(self, request: InboundRequest) -> ConsumerToken:
        consumer_key = request.get("oauth_consumer_key")
        if not consumer_key:
            raise UnknownConsumer(None)
        consumer = self.consumers.lookup_consumer(consumer_key)
        if consumer is None:
            raise UnknownConsumer(consumer_key)
        return consumer

    def get_token(self, request: InboundRequest, consumer: ConsumerToken, token_type: TokenType) -> TokenCredential:
        token_key = request.get("oauth_token")
        token = None
        if token_key and self.tokens is not None:
            token = self.tokens.lookup_token(consumer, token_type, token_key)
        if token is None:
            raise InvalidToken(token_type.value, token_key)
        return token

    def check_timestamp(self, request: InboundRequest) -> int:
        raw = request.get("oauth_timestamp")
        if not raw:
            raise MissingTimestamp()
        try:
            timestamp = int(raw)
        except ValueError:
            raise MalformedParameters(f"oauth_timestamp is not an integer: {raw}")
        now = int(self.clock())
        if abs(now - timestamp) > self.timestamp_threshold:
            raise ExpiredTimestamp(timestamp, now)
        return timestamp

    def check_signature(self,
                        request: InboundRequest,
                        consumer: ConsumerToken,
                        token: Optional[TokenCredential]):
        timestamp = self.check_timestamp(request)
        nonce = request.get("oauth_nonce")
        if not nonce:
            raise MissingNonce()
        method = self.registry.get(request.get("oauth_signature_method"))
        base_string = signature_base_string(request.method, request.url, request.params)
        token_secret = token.secret if token is not None else None
        if not method.verify(base_string, consumer.secret, token_secret, request.get("oauth_signature") or ""):
            raise InvalidSignature()
        if self.nonces.check_and_record(consumer, token, nonce, timestamp):
            raise NonceReplay(nonce)

    def _require_tokens(self) -> TokenStore:
        if self.tokens is None:
            raise RuntimeError("OAuthServer was created without a token store")
        return self.tokens
