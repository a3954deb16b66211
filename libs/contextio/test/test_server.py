import threading

import pytest

from contextio.errors import \
    UnsupportedVersion, \
    UnknownConsumer, \
    InvalidToken, \
    MissingTimestamp, \
    ExpiredTimestamp, \
    MissingNonce, \
    NonceReplay, \
    UnsupportedSignatureMethod, \
    InvalidSignature, \
    MalformedParameters
from contextio.request import RenderMode, Signer
from contextio.server import InboundRequest, OAuthServer
from contextio.signature import PlainText, default_registry
from contextio.stores import MemoryConsumerStore, MemoryTokenStore, MemoryNonceStore
from contextio.tokens import ConsumerToken, TokenCredential, TokenType

from .conftest import CountingNonces

URL = "https://api.example.com/2.0/accounts"
CONSUMER = ConsumerToken("ck", "cs")
ACCESS = TokenCredential("tk", "ts")


@pytest.fixture
def tokens():
    store = MemoryTokenStore()
    store.add(CONSUMER, TokenType.ACCESS, ACCESS)
    return store


@pytest.fixture
def nonce_store(clock):
    return MemoryNonceStore(retention=600, clock=clock)


@pytest.fixture
def server(clock, tokens, nonce_store):
    return OAuthServer(MemoryConsumerStore([CONSUMER]), tokens, nonce_store, clock=clock)


def signed_inbound(clock, method="GET", url=URL, params=None, token=None, consumer=CONSUMER,
                   mode=RenderMode.HEADER, nonces=None, **signer_kwargs):
    """Sign a request and parse it back the way a provider receives it."""
    signer = Signer(consumer, token, clock=clock, nonce_factory=nonces or CountingNonces(), **signer_kwargs)
    signed = signer.sign(method, url, params, mode=mode)
    return InboundRequest.from_parts(method, signed.url, signed.headers, signed.body)


def replace_param(inbound, name, value):
    params = [(k, v) for k, v in inbound.params if k != name]
    if value is not None:
        params.append((name, value))
    return InboundRequest(inbound.method, inbound.url, params)


# ------------------------------ Accepting ------------------------------

@pytest.mark.parametrize("mode", [RenderMode.HEADER, RenderMode.URL])
def test_two_legged_request_is_accepted(server, clock, mode):
    inbound = signed_inbound(clock, params={"limit": 10}, mode=mode)
    assert server.verify_request(inbound, token_type=None) == (CONSUMER, None)


def test_form_body_parameters_are_verified(server, clock):
    inbound = signed_inbound(clock, method="POST", params={"email": "jim@example.com", "tag": ["a", "b"]})
    assert inbound.get("email") == "jim@example.com"
    assert server.verify_request(inbound, token_type=None)[0] == CONSUMER


def test_body_mode_request_is_accepted(server, clock):
    inbound = signed_inbound(clock, method="PUT", params={"a": "1"}, mode=RenderMode.BODY)
    assert server.verify_request(inbound, token_type=None)[0] == CONSUMER


def test_three_legged_request_is_accepted(server, clock):
    inbound = signed_inbound(clock, token=ACCESS)
    consumer, token = server.verify_request(inbound)
    assert consumer == CONSUMER
    assert token == ACCESS


def test_optional_token_is_resolved_when_present(server, clock):
    inbound = signed_inbound(clock, token=ACCESS)
    assert server.verify_request(inbound, token_type=None) == (CONSUMER, ACCESS)


def test_missing_version_defaults_to_1_0(server, clock):
    inbound = signed_inbound(clock)
    # The version parameter is covered by the signature, so rebuild a
    # request which never carried it.
    stripped = replace_param(inbound, "oauth_version", None)
    with pytest.raises(InvalidSignature):
        server.verify_request(stripped, token_type=None)
    assert server.check_version(stripped) == "1.0"


def test_hmac_sha256_and_registered_plaintext(clock, tokens, nonce_store):
    server = OAuthServer(
        MemoryConsumerStore([CONSUMER]), tokens, nonce_store,
        registry=default_registry().register(PlainText()), clock=clock)
    for method in ("HMAC-SHA256", "PLAINTEXT"):
        inbound = signed_inbound(
            clock, signature_method=method, registry=server.registry, nonces=CountingNonces(method))
        assert server.verify_request(inbound, token_type=None)[0] == CONSUMER


def test_verify_inbound_request_reports_results(server, clock):
    ok = server.verify_inbound_request(signed_inbound(clock, token=ACCESS))
    assert ok.ok
    assert ok.token == ACCESS
    failed = server.verify_inbound_request(signed_inbound(clock, nonces=CountingNonces("other")), TokenType.ACCESS)
    assert not failed.ok
    assert isinstance(failed.error, InvalidToken)
    assert failed.error.code == "invalid_token"


# ------------------------------ Rejecting ------------------------------

def test_unsupported_version(server, clock):
    inbound = replace_param(signed_inbound(clock), "oauth_version", "2.0")
    with pytest.raises(UnsupportedVersion):
        server.verify_request(inbound, token_type=None)


def test_unknown_consumer(server, clock):
    inbound = signed_inbound(clock, consumer=ConsumerToken("stranger", "cs"))
    with pytest.raises(UnknownConsumer):
        server.verify_request(inbound, token_type=None)


def test_missing_consumer_key(server, clock):
    inbound = replace_param(signed_inbound(clock), "oauth_consumer_key", None)
    with pytest.raises(UnknownConsumer):
        server.verify_request(inbound, token_type=None)


def test_access_token_required(server, clock):
    with pytest.raises(InvalidToken):
        server.verify_request(signed_inbound(clock), TokenType.ACCESS)


def test_unknown_access_token(server, clock):
    inbound = signed_inbound(clock, token=TokenCredential("forged", "ts"))
    with pytest.raises(InvalidToken):
        server.verify_request(inbound)


def test_token_without_token_store_is_rejected(clock, nonce_store):
    consumer_only = OAuthServer(MemoryConsumerStore([CONSUMER]), nonces=nonce_store, clock=clock)
    inbound = signed_inbound(clock, token=TokenCredential("bogus", "x"))
    verification = consumer_only.verify_inbound_request(inbound, None)
    assert not verification.ok
    assert isinstance(verification.error, InvalidToken)
    assert len(nonce_store) == 0


def test_token_endpoints_need_a_token_store(clock):
    consumer_only = OAuthServer(MemoryConsumerStore([CONSUMER]), clock=clock)
    signed = Signer(CONSUMER, clock=clock, nonce_factory=CountingNonces()).sign(
        "POST", "https://api.example.com/oauth/request_token", callback="oob")
    with pytest.raises(RuntimeError):
        consumer_only.fetch_request_token(InboundRequest.from_parts("POST", signed.url, signed.headers))


def test_form_body_must_be_utf8():
    with pytest.raises(MalformedParameters):
        InboundRequest.from_parts("POST", URL, body=b"name=\xff\xfe", content_type="application/x-www-form-urlencoded")


def test_missing_timestamp(server, clock):
    inbound = replace_param(signed_inbound(clock), "oauth_timestamp", None)
    with pytest.raises(MissingTimestamp):
        server.verify_request(inbound, token_type=None)


def test_non_integer_timestamp(server, clock):
    inbound = replace_param(signed_inbound(clock), "oauth_timestamp", "yesterday")
    with pytest.raises(MalformedParameters):
        server.verify_request(inbound, token_type=None)


@pytest.mark.parametrize("offset", [301, -301, 3600])
def test_expired_timestamp(server, clock, offset):
    inbound = signed_inbound(clock)
    clock.advance(offset)
    with pytest.raises(ExpiredTimestamp):
        server.verify_request(inbound, token_type=None)


@pytest.mark.parametrize("offset", [300, -300, 0])
def test_timestamp_within_window(server, clock, offset):
    inbound = signed_inbound(clock)
    clock.advance(offset)
    assert server.verify_request(inbound, token_type=None)[0] == CONSUMER


def test_missing_nonce(server, clock):
    inbound = replace_param(signed_inbound(clock), "oauth_nonce", None)
    with pytest.raises(MissingNonce):
        server.verify_request(inbound, token_type=None)


@pytest.mark.parametrize("method", ["PLAINTEXT", "RSA-SHA1", None])
def test_unsupported_signature_method(server, clock, method):
    inbound = replace_param(signed_inbound(clock), "oauth_signature_method", method)
    with pytest.raises(UnsupportedSignatureMethod):
        server.verify_request(inbound, token_type=None)


def test_tampered_parameter(server, clock):
    inbound = signed_inbound(clock, params={"limit": 10})
    tampered = replace_param(inbound, "limit", "1000")
    with pytest.raises(InvalidSignature):
        server.verify_request(tampered, token_type=None)


def test_tampered_url(server, clock):
    inbound = signed_inbound(clock)
    moved = InboundRequest(inbound.method, "https://api.example.com/2.0/accounts/other", inbound.params)
    with pytest.raises(InvalidSignature):
        server.verify_request(moved, token_type=None)


def test_wrong_consumer_secret(server, clock):
    inbound = signed_inbound(clock, consumer=ConsumerToken("ck", "not-the-secret"))
    with pytest.raises(InvalidSignature):
        server.verify_request(inbound, token_type=None)


def test_missing_signature(server, clock):
    inbound = replace_param(signed_inbound(clock), "oauth_signature", None)
    with pytest.raises(InvalidSignature):
        server.verify_request(inbound, token_type=None)


def test_duplicate_protocol_parameter(server, clock):
    inbound = signed_inbound(clock)
    inbound.params.append(("oauth_nonce", "second"))
    with pytest.raises(MalformedParameters):
        server.verify_request(inbound, token_type=None)


# ------------------------------- Replay --------------------------------

def test_replayed_request_is_rejected(server, clock):
    inbound = signed_inbound(clock)
    server.verify_request(inbound, token_type=None)
    with pytest.raises(NonceReplay):
        server.verify_request(inbound, token_type=None)


def test_same_nonce_with_other_timestamp_is_accepted(server, clock):
    first = signed_inbound(clock, nonces=lambda: "fixed")
    clock.advance(1)
    second = signed_inbound(clock, nonces=lambda: "fixed")
    server.verify_request(first, token_type=None)
    server.verify_request(second, token_type=None)


def test_rejected_request_does_not_consume_nonce(server, clock, nonce_store):
    genuine = signed_inbound(clock, params={"limit": 10})
    with pytest.raises(InvalidSignature):
        server.verify_request(replace_param(genuine, "limit", "11"), token_type=None)
    assert len(nonce_store) == 0
    server.verify_request(genuine, token_type=None)
    assert len(nonce_store) == 1


def test_nonce_store_prunes_old_entries(clock, nonce_store):
    assert not nonce_store.check_and_record(CONSUMER, None, "n", clock.now)
    assert nonce_store.check_and_record(CONSUMER, None, "n", clock.now)
    clock.advance(601)
    assert not nonce_store.check_and_record(CONSUMER, None, "other", clock.now)
    assert len(nonce_store) == 1


def test_concurrent_replays_accept_exactly_one(server, clock):
    inbound = signed_inbound(clock)
    outcomes = []
    lock = threading.Lock()

    def verify():
        result = server.verify_inbound_request(inbound, token_type=None)
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=verify) for _ in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert sum(1 for result in outcomes if result.ok) == 1
    assert all(isinstance(result.error, NonceReplay) for result in outcomes if not result.ok)


# ---------------------------- Token endpoints ---------------------------

def test_three_legged_handshake(server, clock, tokens):
    signer = Signer(CONSUMER, clock=clock, nonce_factory=CountingNonces("rt"))
    signed = signer.sign("POST", "https://api.example.com/oauth/request_token", callback="https://app.example.com/cb")
    request_token = server.fetch_request_token(InboundRequest.from_parts("POST", signed.url, signed.headers))
    assert tokens.callback_for(request_token.key) == "https://app.example.com/cb"

    verifier = tokens.authorize(CONSUMER, request_token.key)

    signer = Signer(CONSUMER, request_token, clock=clock, nonce_factory=CountingNonces("at"))
    signed = signer.sign("POST", "https://api.example.com/oauth/access_token", verifier=verifier)
    access_token = server.fetch_access_token(InboundRequest.from_parts("POST", signed.url, signed.headers))
    assert tokens.lookup_token(CONSUMER, TokenType.ACCESS, access_token.key) == access_token
    assert tokens.lookup_token(CONSUMER, TokenType.REQUEST, request_token.key) is None

    inbound = signed_inbound(clock, token=access_token, nonces=CountingNonces("api"))
    assert server.verify_request(inbound) == (CONSUMER, access_token)


def test_access_token_requires_verifier(server, clock, tokens):
    request_token = tokens.new_request_token(CONSUMER, None)
    tokens.authorize(CONSUMER, request_token.key)
    signer = Signer(CONSUMER, request_token, clock=clock, nonce_factory=CountingNonces("at"))
    signed = signer.sign("POST", "https://api.example.com/oauth/access_token", verifier="wrong")
    with pytest.raises(InvalidToken):
        server.fetch_access_token(InboundRequest.from_parts("POST", signed.url, signed.headers))


def test_access_token_cannot_be_used_as_request_token(server, clock):
    signer = Signer(CONSUMER, ACCESS, clock=clock, nonce_factory=CountingNonces("at"))
    signed = signer.sign("POST", "https://api.example.com/oauth/access_token", verifier="v")
    with pytest.raises(InvalidToken):
        server.fetch_access_token(InboundRequest.from_parts("POST", signed.url, signed.headers))
