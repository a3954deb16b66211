from .version import __version__
from .tokens import ConsumerToken, TokenCredential, RequestToken, AccessToken, TokenType
from .canonical import \
    percent_encode, \
    normalize_url, \
    normalize_parameters, \
    signature_base_string, \
    authorization_header, \
    parse_authorization_header
from .signature import \
    SignatureMethod, \
    HmacSha1, \
    HmacSha256, \
    PlainText, \
    SignatureMethodRegistry, \
    default_registry
from .request import RenderMode, SignedRequest, Signer, build_signed_request
from .stores import \
    ConsumerStore, \
    TokenStore, \
    NonceStore, \
    MemoryConsumerStore, \
    MemoryTokenStore, \
    MemoryNonceStore
from .server import InboundRequest, Verification, OAuthServer
from .config import ClientConfig, load_config
from .response import ContextIOResponse
from .transport import HttpTransport, RequestsTransport, TransportResponse
from .client import ContextIORequest, ContextIO, check_filter_params
from .errors import *
