"""
Build signed OAuth 1.0 requests and render them in one of the
supported transmission modes.
"""
import dataclasses as dc
import logging
import secrets
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from .canonical import \
    OAUTH_PARAM_PREFIX, \
    Pair, \
    Params, \
    authorization_header, \
    encode_pairs, \
    flatten_parameters, \
    signature_base_string, \
    split_url
from .errors import MalformedParameters
from .signature import SignatureMethod, SignatureMethodRegistry, default_registry
from .tokens import ConsumerToken, TokenCredential

logger = logging.getLogger("contextio.oauth")

OAUTH_VERSION = "1.0"
DEFAULT_SIGNATURE_METHOD = "HMAC-SHA1"
HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Number of random bytes behind each nonce
NONCE_BYTES = 32


class RenderMode(Enum):
    """
    HEADER: oauth_* in the Authorization header, application parameters
            in the query (GET/DELETE) or form body (POST/PUT).
    QUERY:  everything returned as query pairs next to the bare URL.
    URL:    everything composed into the returned URL.
    BODY:   everything in a form-urlencoded body (POST/PUT only).
    """
    HEADER = "header"
    QUERY = "query"
    URL = "url"
    BODY = "body"


def generate_nonce() -> str:
    return secrets.token_hex(NONCE_BYTES)


def generate_timestamp(clock: Callable[[], float] = time.time) -> str:
    return str(int(clock()))


@dc.dataclass
class SignedRequest:
    method: str
    url: str
    headers: Dict[str, str] = dc.field(default_factory=dict)
    body: Optional[str] = None
    query: List[Pair] = dc.field(default_factory=list)
    oauth_params: Dict[str, str] = dc.field(default_factory=dict)
    base_string: str = ""

    @property
    def full_url(self) -> str:
        return _compose(self.url, self.query)


class Signer:

    def __init__(self,
                 consumer: ConsumerToken,
                 token: Optional[TokenCredential] = None, *,
                 signature_method: Union[str, SignatureMethod] = DEFAULT_SIGNATURE_METHOD,
                 registry: Optional[SignatureMethodRegistry] = None,
                 realm: Optional[str] = None,
                 clock: Callable[[], float] = time.time,
                 nonce_factory: Callable[[], str] = generate_nonce):
        """
        Brief

            Signs requests on behalf of `consumer` and, in three-legged
            flows, `token`. A Signer holds no per-request state, so one
            instance may be shared between threads.

        Arguments

            `signature_method`: Name of a method in `registry`, or a
              SignatureMethod instance. Defaults to HMAC-SHA1.

            `realm`: Optional realm, only rendered in header mode.

            `clock`, `nonce_factory`: Sources for oauth_timestamp and
              oauth_nonce. Replace them in tests only.
        """
        if not isinstance(consumer, ConsumerToken):
            raise MalformedParameters("consumer must be a ConsumerToken")
        if token is not None and not isinstance(token, TokenCredential):
            raise MalformedParameters("token must be a TokenCredential or None")
        self.consumer = consumer
        self.token = token
        if isinstance(signature_method, SignatureMethod):
            self.signature_method = signature_method
        else:
            self.signature_method = (registry or default_registry()).get(signature_method)
        self.realm = realm
        self.clock = clock
        self.nonce_factory = nonce_factory

    def protocol_parameters(self, callback: Optional[str] = None, verifier: Optional[str] = None) -> Dict[str, str]:
        params = {
            "oauth_consumer_key": self.consumer.key,
            "oauth_nonce": self.nonce_factory(),
            "oauth_signature_method": self.signature_method.name,
            "oauth_timestamp": generate_timestamp(self.clock),
            "oauth_version": OAUTH_VERSION,
        }
        if self.token is not None:
            params["oauth_token"] = self.token.key
        if callback is not None:
            params["oauth_callback"] = callback
        if verifier is not None:
            params["oauth_verifier"] = verifier
        return params

    def sign(self,
             method: str,
             url: str,
             params: Params = None, *,
             mode: RenderMode = RenderMode.HEADER,
             callback: Optional[str] = None,
             verifier: Optional[str] = None,
             sign_body: bool = True) -> SignedRequest:
        """
        Brief

            Sign a request and render it according to `mode`.

        Arguments

            `url`: Target URL. A query string on it is kept on the wire and
              takes part in the signature.

            `params`: Application parameters, as mapping or (name, value)
              pairs. List values are sent once per element.

            `sign_body`: Set to False if `params` will not be transmitted as
              query or form parameters (multipart or JSON bodies). They are
              then excluded from the signature and from the rendered request.
        """
        if not isinstance(method, str) or method.upper() not in HTTP_METHODS:
            raise MalformedParameters(f"Unsupported HTTP method: {method!r}")
        method = method.upper()
        if not isinstance(mode, RenderMode):
            raise MalformedParameters(f"Unsupported render mode: {mode!r}")
        if mode == RenderMode.BODY and method not in ("POST", "PUT"):
            raise MalformedParameters(f"Body mode requires POST or PUT, not {method}")
        # Validates the URL before a nonce is spent on it.
        split_url(url)

        app_pairs = flatten_parameters(params) if sign_body else []
        for name, _ in app_pairs:
            if name.startswith(OAUTH_PARAM_PREFIX):
                raise MalformedParameters(f"{name} is a protocol parameter and cannot be passed as an application parameter")

        oauth_params = self.protocol_parameters(callback=callback, verifier=verifier)
        base_string = signature_base_string(method, url, list(oauth_params.items()) + app_pairs)
        token_secret = self.token.secret if self.token is not None else None
        oauth_params["oauth_signature"] = self.signature_method.sign(
            base_string, self.consumer.secret, token_secret)
        logger.debug(
            f"[SIGN] {method} {url} consumer={self.consumer.key} "
            f"method={self.signature_method.name} nonce={oauth_params['oauth_nonce']}")

        result = SignedRequest(method=method, url=url, oauth_params=oauth_params, base_string=base_string)
        oauth_pairs = list(oauth_params.items())
        if mode == RenderMode.HEADER:
            result.headers["Authorization"] = authorization_header(oauth_params, self.realm)
            if method in ("POST", "PUT"):
                self._set_form_body(result, app_pairs)
            else:
                result.url = _compose(url, app_pairs)
        elif mode == RenderMode.QUERY:
            result.query = app_pairs + oauth_pairs
        elif mode == RenderMode.URL:
            result.url = _compose(url, app_pairs + oauth_pairs)
        else:
            self._set_form_body(result, app_pairs + oauth_pairs)
        return result

    @staticmethod
    def _set_form_body(result: SignedRequest, pairs: List[Pair]):
        if pairs:
            result.body = encode_pairs(pairs)
            result.headers["Content-Type"] = FORM_CONTENT_TYPE


def _compose(url: str, pairs: List[Pair]) -> str:
    if not pairs:
        return url
    separator = "&" if "?" in url else "?"
    return url + separator + encode_pairs(pairs)


def build_signed_request(consumer: ConsumerToken,
                         token: Optional[TokenCredential],
                         method: str,
                         url: str,
                         params: Params = None,
                         mode: RenderMode = RenderMode.HEADER,
                         **kwargs) -> SignedRequest:
    """
    One-shot signing. `kwargs` accepts `callback`, `verifier`,
    `sign_body` and any Signer constructor keyword.
    """
    sign_kwargs = {k: kwargs.pop(k) for k in ("callback", "verifier", "sign_body") if k in kwargs}
    return Signer(consumer, token, **kwargs).sign(method, url, params, mode=mode, **sign_kwargs)
