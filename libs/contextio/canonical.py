"""
OAuth 1.0 parameter canonicalization (RFC 5849, section 3.4.1).

All functions in this module are pure: given the same parameter set
they produce the same strings, regardless of insertion order.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote, unquote, urlsplit, parse_qsl

from .errors import MalformedParameters

Pair = Tuple[str, str]
Params = Union[None, Mapping[str, Any], Iterable[Tuple[str, Any]]]

SIGNATURE_PARAM = "oauth_signature"
OAUTH_PARAM_PREFIX = "oauth_"
DEFAULT_PORTS = {"http": 80, "https": 443}


def percent_encode(value: Union[str, bytes]) -> str:
    """RFC 3986 percent encoding. Only letters, digits and `-._~` stay as is."""
    if isinstance(value, bytes):
        return quote(value, safe="")
    return quote(str(value).encode("utf-8"), safe="")


def parameter_text(name: str, value: Any) -> str:
    """Convert a single parameter value to the text which gets signed."""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedParameters(f"Parameter '{name}' is not valid UTF-8")
    # bool is an int subclass, but "True" is never what the server expects.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise MalformedParameters(
        f"Parameter '{name}' has a value of type {type(value).__name__} which cannot be signed")


def flatten_parameters(params: Params) -> List[Pair]:
    """
    Turn a mapping (or a sequence of pairs) into a flat list of
    (name, text) pairs. List and tuple values are multi-valued and
    contribute one pair per element, in their original order.
    """
    if params is None:
        return []
    items = params.items() if isinstance(params, Mapping) else params
    result: List[Pair] = []
    for item in items:
        try:
            name, value = item
        except (TypeError, ValueError):
            raise MalformedParameters(f"Expected a (name, value) pair, got {item!r}")
        if not isinstance(name, str) or not name:
            raise MalformedParameters(f"Parameter names must be non-empty strings, got {name!r}")
        if isinstance(value, (list, tuple)):
            for element in value:
                if isinstance(element, (list, tuple, dict)):
                    raise MalformedParameters(f"Parameter '{name}' contains a nested sequence")
                result.append((name, parameter_text(name, element)))
        else:
            result.append((name, parameter_text(name, value)))
    return result


def normalize_url(url: str) -> str:
    """
    Lower-case scheme and host, drop default ports, query and fragment.
    The path keeps its case.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise MalformedParameters(f"Invalid URL '{url}': {e}")
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise MalformedParameters(f"Unsupported URL scheme in '{url}'")
    host = parts.hostname
    if not host:
        raise MalformedParameters(f"URL '{url}' has no host")
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != DEFAULT_PORTS[scheme]:
        host += f":{port}"
    return f"{scheme}://{host}{parts.path or '/'}"


def split_url(url: str) -> Tuple[str, List[Pair]]:
    """Return the normalized URL and the parameters of its query string."""
    normalized = normalize_url(url)
    return normalized, parse_qsl(urlsplit(url).query, keep_blank_values=True)


def normalize_parameters(pairs: Iterable[Pair]) -> str:
    """
    Encode, sort and join parameters. Ties on the encoded name are broken
    by the encoded value. Identical pairs keep their relative order.
    """
    encoded = [
        (percent_encode(name), percent_encode(value))
        for name, value in pairs
        if name != SIGNATURE_PARAM]
    encoded.sort(key=lambda pair: (pair[0], pair[1]))
    return "&".join(f"{name}={value}" for name, value in encoded)


def signature_base_string(method: str, url: str, pairs: Iterable[Pair]) -> str:
    """
    Build `METHOD&enc(url)&enc(params)`. Query parameters already present
    on `url` are merged into the parameter set.
    """
    normalized_url, query_pairs = split_url(url)
    all_pairs = list(query_pairs) + list(pairs)
    return "&".join((
        method.upper(),
        percent_encode(normalized_url),
        percent_encode(normalize_parameters(all_pairs))))


def encode_pairs(pairs: Iterable[Pair]) -> str:
    """Render pairs as a query string or form body with RFC 3986 encoding."""
    return "&".join(f"{percent_encode(name)}={percent_encode(value)}" for name, value in pairs)


def authorization_header(oauth_params: Mapping[str, str], realm: Optional[str] = None) -> str:
    """Render the value of an `Authorization: OAuth ...` header."""
    parts = []
    if realm is not None:
        parts.append(f'realm="{realm}"')
    parts.extend(f'{percent_encode(name)}="{percent_encode(value)}"' for name, value in oauth_params.items())
    return "OAuth " + ", ".join(parts)


def parse_authorization_header(value: str) -> Dict[str, str]:
    """
    Parse an `OAuth ...` Authorization header into its parameters.
    The realm is dropped, since it never takes part in the signature.
    """
    if not value or value[:6].lower() != "oauth ":
        raise MalformedParameters("Not an OAuth authorization header")
    params: Dict[str, str] = {}
    for part in value[6:].split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, quoted = part.partition("=")
        quoted = quoted.strip()
        if not sep or len(quoted) < 2 or quoted[0] != '"' or quoted[-1] != '"':
            raise MalformedParameters(f"Malformed authorization header parameter: {part}")
        name = unquote(name.strip())
        if name == "realm":
            continue
        if name in params:
            raise MalformedParameters(f"Duplicate authorization header parameter: {name}")
        params[name] = unquote(quoted[1:-1])
    return params
