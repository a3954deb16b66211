"""
Mock Context.IO provider: OAuth 1.0 token endpoints plus a few
signature-protected API resources.
"""
import logging
import time
from urllib.parse import urlencode

from flask import Flask, g, jsonify, request

from contextio.errors import OAuthError
from contextio.provider import inbound_from_flask, oauth_error_response, require_oauth
from contextio.server import OAuthServer
from contextio.stores import MemoryConsumerStore, MemoryTokenStore, MemoryNonceStore
from contextio.tokens import ConsumerToken, TokenCredential, TokenType

logger = logging.getLogger('contextio.mock-provider')

# Mock configuration
MOCK_CONSUMERS = {
    'test-consumer': 'test-secret',
    'test-access-key-id': 'test-access-key-secret',
}

# Access tokens which exist from the start, per consumer
MOCK_ACCESS_TOKENS = {
    'test-consumer': [('test-token', 'test-token-secret')],
}

MOCK_ACCOUNTS = [
    {'id': '4f01234567890abcdef09876', 'email_addresses': ['jim@example.com']},
    {'id': '4f01234567890abcdef01234', 'email_addresses': ['ann@example.com']},
]


def create_app(clock=time.time, timestamp_threshold: int = 300) -> Flask:
    """Create the Flask app. `clock` is shared by the server and its nonce store."""
    consumers = MemoryConsumerStore(ConsumerToken(k, s) for k, s in MOCK_CONSUMERS.items())
    tokens = MemoryTokenStore()
    for consumer_key, pairs in MOCK_ACCESS_TOKENS.items():
        for key, secret in pairs:
            tokens.add(consumers.lookup_consumer(consumer_key), TokenType.ACCESS, TokenCredential(key, secret))
    server = OAuthServer(
        consumers,
        tokens,
        MemoryNonceStore(retention=2 * timestamp_threshold, clock=clock),
        timestamp_threshold=timestamp_threshold,
        clock=clock)

    app = Flask('contextio-mock-provider')
    app.config['OAUTH_SERVER'] = server
    app.config['TOKEN_STORE'] = tokens

    # ==================== Token endpoints ====================

    @app.route('/oauth/request_token', methods=['POST'])
    def request_token():
        logger.info(f"[TOKEN] Request token requested from {request.remote_addr}")
        try:
            token = server.fetch_request_token(inbound_from_flask())
        except OAuthError as e:
            logger.error(f"[TOKEN] {e.code}: {e}")
            return oauth_error_response(e)
        return form_response(
            oauth_token=token.key,
            oauth_token_secret=token.secret,
            oauth_callback_confirmed='true')

    @app.route('/oauth/authorize', methods=['GET'])
    def authorize():
        # Stands in for the user's consent page: every request is approved.
        consumer = consumers.lookup_consumer(request.args.get('oauth_consumer_key', ''))
        if consumer is None:
            return jsonify({'error': 'unknown_consumer'}), 400
        token_key = request.args.get('oauth_token', '')
        try:
            verifier = tokens.authorize(consumer, token_key)
        except OAuthError as e:
            return jsonify({'error': e.code, 'message': str(e)}), 400
        logger.info(f"[TOKEN] ✓ Request token {token_key} authorized")
        return jsonify({
            'oauth_token': token_key,
            'oauth_verifier': verifier,
            'callback': tokens.callback_for(token_key)})

    @app.route('/oauth/access_token', methods=['POST'])
    def access_token():
        try:
            token = server.fetch_access_token(inbound_from_flask())
        except OAuthError as e:
            logger.error(f"[TOKEN] {e.code}: {e}")
            return oauth_error_response(e)
        return form_response(oauth_token=token.key, oauth_token_secret=token.secret)

    # ===================== API resources =====================

    @app.route('/public', methods=['GET'])
    def public():
        logger.info("[API] Public endpoint accessed")
        return jsonify({'message': 'Public resource - no authentication required'})

    @app.route('/2.0/accounts', methods=['GET'])
    @require_oauth(server)
    def list_accounts():
        limit = int(request.args.get('limit', len(MOCK_ACCOUNTS)))
        logger.info(f"[API] ✓ accounts listed for consumer={g.oauth_consumer.key}")
        return jsonify(MOCK_ACCOUNTS[:limit])

    @app.route('/2.0/accounts/<account_id>/messages', methods=['GET'])
    @require_oauth(server, TokenType.ACCESS)
    def list_messages(account_id):
        return jsonify([{
            'account': account_id,
            'subject': f"Hello {g.oauth_token.key}",
            'folder': request.args.getlist('folder'),
        }])

    @app.route('/2.0/<path:path>', methods=['GET', 'POST', 'PUT', 'DELETE'])
    @require_oauth(server)
    def echo(path):
        return jsonify({
            'method': request.method,
            'path': path,
            'args': {k: request.args.getlist(k) for k in request.args},
            'form': {k: request.form.getlist(k) for k in request.form},
            'json': request.get_json(silent=True),
            'consumer': g.oauth_consumer.key,
            'token': g.oauth_token.key if g.oauth_token else None,
        })

    return app


def form_response(**values):
    return urlencode(values), 200, {'Content-Type': 'application/x-www-form-urlencoded'}


def run_server(host='127.0.0.1', port=8080):
    """Run the mock provider."""
    logger.info(f"Starting Context.IO Mock Provider on {host}:{port}")
    logger.info(f"Test consumers: {', '.join(MOCK_CONSUMERS.keys())}")
    create_app().run(host=host, port=port)
