"""
Flask glue for services which verify OAuth 1.0 signed requests.
"""
import functools
import logging
from typing import Optional
from urllib.parse import quote

from flask import g, jsonify, request as flask_request

from .errors import OAuthError
from .request import FORM_CONTENT_TYPE
from .server import InboundRequest, OAuthServer
from .tokens import TokenType

logger = logging.getLogger("contextio.oauth")


def inbound_from_flask(req=None) -> InboundRequest:
    """
    Build an InboundRequest from a Flask request. Only form-urlencoded
    bodies contribute parameters; multipart and JSON bodies are not
    signed.
    """
    req = req or flask_request
    # The signature covers the path as sent, so prefer the raw request URI.
    raw_uri = req.environ.get("RAW_URI") or req.environ.get("REQUEST_URI")
    if raw_uri and raw_uri.startswith("/"):
        path = raw_uri.split("?", 1)[0]
    else:
        path = quote(req.script_root + req.path, safe="/!$&'()*+,;=:@")
    inbound = InboundRequest.from_parts(
        method=req.method,
        url=f"{req.scheme}://{req.host}{path}",
        headers={"Authorization": req.headers.get("Authorization", "")})
    inbound.params.extend(req.args.items(multi=True))
    if req.mimetype == FORM_CONTENT_TYPE:
        inbound.params.extend(req.form.items(multi=True))
    return inbound


def oauth_error_response(error: OAuthError):
    return jsonify({"error": error.code, "message": str(error)}), 401


def require_oauth(server: OAuthServer, token_type: Optional[TokenType] = None):
    """
    Decorate a Flask view so it only runs for correctly signed requests.
    The verified credentials are available as `g.oauth_consumer` and
    `g.oauth_token`.

        @app.route("/2.0/accounts")
        @require_oauth(server)
        def accounts():
            return jsonify(owner=g.oauth_consumer.key)
    """
    def decorator(view):
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            try:
                inbound = inbound_from_flask()
            except OAuthError as e:
                logger.warning(f"[VERIFY] Unparsable request {flask_request.method} {flask_request.path}: {e}")
                return oauth_error_response(e)
            verification = server.verify_inbound_request(inbound, token_type)
            if not verification.ok:
                return oauth_error_response(verification.error)
            g.oauth_consumer = verification.consumer
            g.oauth_token = verification.token
            return view(*args, **kwargs)
        return wrapper
    return decorator
