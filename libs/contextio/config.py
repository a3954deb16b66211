"""
Client configuration, in code or from a YAML settings file.

A settings file looks like this (all keys optional):

    endpoint: api.context.io
    apiVersion: "2.0"
    ssl: true
    verifyTls: true
    authHeaders: true
    timeout: 30
    userAgent: MyApp/1.0
    headers:
      X-Request-Source: nightly-sync
    query:
      debug: "1"
    consumerKey: ...
    consumerSecret: ...
    accessToken: ...
    accessTokenSecret: ...
"""
import dataclasses as dc
import os
from typing import Dict, Optional

import yaml

from .errors import ConfigError

# Environment variable which points to the default settings file
SETTINGS_FILE_ENV = "CONTEXTIO_SETTINGS_FILE"

SUPPORTED_API_VERSIONS = ("2.0",)
DEFAULT_ENDPOINT = "api.context.io"
DEFAULT_USER_AGENT = "ContextIOLibrary/2.0 (Python)"


@dc.dataclass
class ClientConfig:
    endpoint_host: str = DEFAULT_ENDPOINT
    api_version_: str = "2.0"
    use_ssl: bool = True
    verify_tls: bool = True
    use_auth_headers: bool = True
    timeout_seconds: Optional[float] = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    headers: Dict[str, str] = dc.field(default_factory=dict)
    query_params: Dict[str, str] = dc.field(default_factory=dict)
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None
    access_token: Optional[str] = None
    access_token_secret: Optional[str] = None

    def header(self, name: str, value: str) -> "ClientConfig":
        self.headers[name] = value
        return self

    def query(self, name: str, value: str) -> "ClientConfig":
        if name.startswith("oauth_"):
            raise ConfigError(f"Query parameter '{name}' is reserved for OAuth")
        self.query_params[name] = value
        return self

    def timeout(self, seconds: Optional[float]) -> "ClientConfig":
        if seconds is not None and seconds <= 0:
            raise ConfigError(f"Timeout must be positive, got {seconds}")
        self.timeout_seconds = seconds
        return self

    def ssl(self, enabled: bool, verify: bool = True) -> "ClientConfig":
        self.use_ssl = bool(enabled)
        self.verify_tls = bool(verify)
        return self

    def endpoint(self, host: str) -> "ClientConfig":
        if not host or "/" in host:
            raise ConfigError(f"Endpoint must be a host name, got '{host}'")
        self.endpoint_host = host
        return self

    def api_version(self, version: str) -> "ClientConfig":
        if version not in SUPPORTED_API_VERSIONS:
            raise ConfigError(f"API version '{version}' not supported, try one of: {', '.join(SUPPORTED_API_VERSIONS)}")
        self.api_version_ = version
        return self

    def auth_headers(self, enabled: bool = True) -> "ClientConfig":
        self.use_auth_headers = bool(enabled)
        return self


# Maps settings file keys to the ClientConfig setter which applies them
_SETTERS = {
    "endpoint": lambda c, v: c.endpoint(str(v)),
    "apiVersion": lambda c, v: c.api_version(str(v)),
    "ssl": lambda c, v: c.ssl(_as_bool("ssl", v), c.verify_tls),
    "verifyTls": lambda c, v: c.ssl(c.use_ssl, _as_bool("verifyTls", v)),
    "authHeaders": lambda c, v: c.auth_headers(_as_bool("authHeaders", v)),
    "timeout": lambda c, v: c.timeout(_as_number("timeout", v)),
    "userAgent": lambda c, v: setattr(c, "user_agent", str(v)),
    "headers": lambda c, v: [c.header(str(k), str(x)) for k, x in _as_mapping("headers", v).items()],
    "query": lambda c, v: [c.query(str(k), str(x)) for k, x in _as_mapping("query", v).items()],
    "consumerKey": lambda c, v: setattr(c, "consumer_key", str(v)),
    "consumerSecret": lambda c, v: setattr(c, "consumer_secret", str(v)),
    "accessToken": lambda c, v: setattr(c, "access_token", str(v)),
    "accessTokenSecret": lambda c, v: setattr(c, "access_token_secret", str(v)),
}


def _as_bool(key, value) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}")
    return value


def _as_number(key, value) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{key}' must be a number, got {value!r}")
    return float(value)


def _as_mapping(key, value) -> dict:
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {value!r}")
    return value


def config_from_dict(settings: dict, path: Optional[str] = None) -> ClientConfig:
    if settings is None:
        settings = {}
    if not isinstance(settings, dict):
        raise ConfigError("Settings must be a mapping", path)
    config = ClientConfig()
    for key, value in settings.items():
        if key not in _SETTERS:
            raise ConfigError(f"Unknown setting '{key}'", path)
        try:
            _SETTERS[key](config, value)
        except ConfigError as e:
            if path and not e.path:
                raise ConfigError(str(e), path) from e
            raise
    return config


def load_config(path: Optional[str] = None) -> ClientConfig:
    """
    Load a ClientConfig from a YAML file. Without `path`, the file named
    by the CONTEXTIO_SETTINGS_FILE environment variable is used; if that
    is not set either, the defaults are returned.
    """
    path = path or os.environ.get(SETTINGS_FILE_ENV)
    if not path:
        return ClientConfig()
    try:
        with open(path, "r") as settings_file:
            settings = yaml.load(settings_file, Loader=yaml.SafeLoader)
    except OSError as e:
        raise ConfigError(f"Cannot read settings file: {e}", path) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", path) from e
    return config_from_dict(settings, path)
