import json
import logging
import os
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

from .canonical import encode_pairs, flatten_parameters
from .config import ClientConfig
from .errors import HTTPStatusError, InvalidArgumentError
from .request import RenderMode, Signer, generate_nonce
from .response import ContextIOResponse, ANY_CONTENT_TYPE
from .tokens import ConsumerToken, TokenCredential
from .transport import HttpTransport, RequestsTransport

logger = logging.getLogger("contextio.client")

JSON_CONTENT_TYPE = "application/json"


class ContextIORequest:

    def __init__(self,
                 consumer_key: str,
                 consumer_secret: str,
                 access_token: Optional[str] = None,
                 access_token_secret: Optional[str] = None, *,
                 config: Optional[ClientConfig] = None,
                 transport: Optional[HttpTransport] = None,
                 clock: Callable[[], float] = time.time,
                 nonce_factory: Callable[[], str] = generate_nonce):
        """
        Brief

            Signs and sends requests against the Context.IO REST API.

            The access token (three-legged flow) is only used for calls
            which are scoped to an account. All other calls are signed
            with the consumer credentials alone.

        Example

            request = ContextIORequest("key", "secret")
            accounts = request.get(None, "accounts", {"limit": 10}).data

        Arguments

            `config`: Endpoint, API version, TLS and header settings.
              Defaults to a fresh `ClientConfig()`.

            `transport`: HTTP implementation. Defaults to a
              `RequestsTransport` which honours `config.verify_tls`.

            `clock`, `nonce_factory`: Passed on to the Signer of each
              request.
        """
        self.consumer = ConsumerToken(consumer_key, consumer_secret)
        self.access_token = None
        if access_token is not None and access_token_secret is not None:
            self.access_token = TokenCredential(access_token, access_token_secret)
        self.config = config or ClientConfig()
        self.transport = transport or RequestsTransport(verify=self.config.verify_tls)
        self.clock = clock
        self.nonce_factory = nonce_factory

    def build_base_url(self) -> str:
        scheme = "https" if self.config.use_ssl else "http"
        return f"{scheme}://{self.config.endpoint_host}/{self.config.api_version_}/"

    def build_url(self, action: str) -> str:
        return self.build_base_url() + action

    # -------------------------- Verbs --------------------------

    def get(self,
            account: Union[None, str, Iterable[str]],
            action: str = "",
            params=None,
            acceptable_content_types: Optional[List[str]] = None):
        """
        GET `action`. If `account` is a list of account ids, the call is
        repeated for each of them and a dict of responses is returned.
        """
        if isinstance(account, (list, tuple)):
            return {
                account_id: self.send_request("GET", account_id, action, params,
                                              acceptable_content_types=acceptable_content_types)
                for account_id in account}
        return self.send_request("GET", account, action, params, acceptable_content_types=acceptable_content_types)

    def put(self, account, action, params=None, headers=None, json_body=None, query=None) -> ContextIOResponse:
        return self.send_request("PUT", account, action, params, headers=headers, json_body=json_body, query=query)

    def post(self, account, action="", params=None, files=None, headers=None) -> ContextIOResponse:
        return self.send_request("POST", account, action, params, files=files, headers=headers)

    def delete(self, account, action="", params=None) -> ContextIOResponse:
        return self.send_request("DELETE", account, action, params)

    # ------------------------- Sending -------------------------

    def send_request(self,
                     method: str,
                     account: Optional[str],
                     action: str,
                     params=None,
                     files: Optional[Dict[str, Any]] = None,
                     acceptable_content_types: Optional[List[str]] = None,
                     headers: Optional[Dict[str, str]] = None,
                     query=None,
                     json_body: Any = None) -> ContextIOResponse:
        """
        Brief

            Sign and send a single request. Raises `HTTPStatusError` if the
            server answers with an error status or an unacceptable content
            type, and `TransportError` if no answer arrives at all.

        Arguments

            `params`: Application parameters. They are sent in the query
              string for GET and DELETE, and as form-urlencoded body for
              POST and PUT, where list values are named `key[]`.

            `files`: Multipart uploads, as understood by `requests`. The
              request is then signed without its body parameters.

            `query`: Parameters which always go to the query string, even
              for POST and PUT. They are signed like any query parameter.

            `json_body`: JSON document for the request body. Like `files`,
              the body does not take part in the signature.
        """
        token = None
        if account is not None:
            action = f"accounts/{account}/{action}"
            if action.endswith("/"):
                action = action[:-1]
            token = self.access_token
        url = self.build_url(action)
        if query:
            url += ("&" if "?" in url else "?") + encode_pairs(flatten_parameters(wire_values(query)))
        if self.config.query_params:
            url += ("&" if "?" in url else "?") + encode_pairs(sorted(self.config.query_params.items()))

        unsigned_body = files is not None or json_body is not None
        if method in ("POST", "PUT") and not unsigned_body:
            pairs = self.form_pairs(params)
        else:
            pairs = flatten_parameters(wire_values(params))

        if unsigned_body or self.config.use_auth_headers:
            mode = RenderMode.HEADER
        elif method in ("POST", "PUT") and pairs:
            mode = RenderMode.BODY
        else:
            mode = RenderMode.URL

        signer = Signer(self.consumer, token, clock=self.clock, nonce_factory=self.nonce_factory)
        signed = signer.sign(method, url, None if unsigned_body else pairs, mode=mode)

        request_headers = {"User-Agent": self.config.user_agent}
        request_headers.update(self.config.headers)
        request_headers.update(headers or {})
        request_headers.update(signed.headers)
        body: Any = signed.body
        if files is not None:
            body = pairs
        elif json_body is not None:
            body = json_body if isinstance(json_body, str) else json.dumps(json_body)
            request_headers["Content-Type"] = JSON_CONTENT_TYPE
        elif method == "POST" and body is None:
            request_headers["Content-Length"] = "0"

        logger.info(f"[HTTP] {method} {signed.url}")
        result = self.transport.send(
            method,
            signed.url,
            request_headers,
            body=body,
            files=files,
            timeout=self.config.timeout_seconds)
        response = ContextIOResponse(
            status_code=result.status_code,
            headers=result.headers,
            content_type=result.content_type,
            content=result.content,
            acceptable_content_types=acceptable_content_types)
        if response.has_error():
            logger.warning(f"[HTTP] {method} {signed.url} failed with {response.status_code}")
            raise HTTPStatusError(response)
        return response

    @staticmethod
    def form_pairs(params) -> List[Tuple[str, str]]:
        """Flatten form parameters, naming multi-valued ones `key[]`."""
        renamed = []
        for name, value in wire_values(params):
            if isinstance(value, (list, tuple)) and not name.endswith("[]"):
                name += "[]"
            renamed.append((name, value))
        return flatten_parameters(renamed)


def wire_values(params) -> List[Tuple[str, Any]]:
    """Parameter pairs with booleans sent as 1/0, the way the API expects them."""
    if params is None:
        return []
    items = params.items() if isinstance(params, Mapping) else params
    return [(name, int(value) if isinstance(value, bool) else value) for name, value in items]


# ----------------------- Parameter checks ------------------------

MESSAGE_ID_KEYS = ("message_id", "email_message_id", "gmail_message_id")
MESSAGE_FLAGS = ("seen", "answered", "flagged", "deleted", "draft")

WEBHOOK_FILTERS = (
    "filter_to", "filter_from", "filter_cc", "filter_subject", "filter_thread",
    "filter_new_important", "filter_file_name", "filter_file_revisions", "sync_period",
    "callback_url", "failure_notif_url", "filter_folder_added", "filter_folder_removed",
    "filter_to_domain", "filter_from_domain", "filter_parsed_receipts", "include_body",
    "body_type")
APPLICATION_WEBHOOK_FILTERS = WEBHOOK_FILTERS + ("include_header", "receive_all_changes", "receive_historical")


def check_filter_params(given: Optional[Mapping[str, Any]],
                        valid: Iterable[str],
                        required: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Lower-case the keys of `given`, reject keys outside `valid` and
    make sure every `required` key is present.
    """
    if given is None:
        given = {}
    if not isinstance(given, Mapping):
        raise InvalidArgumentError(f"Parameters must be a mapping, got {type(given).__name__}")
    valid = set(valid)
    filtered = {}
    for name, value in given.items():
        key = str(name).lower()
        if key not in valid:
            raise InvalidArgumentError(f"Invalid parameter '{name}'. Valid parameters: {', '.join(sorted(valid))}")
        filtered[key] = value
    missing = [name for name in required if name not in filtered]
    if missing:
        raise InvalidArgumentError(f"Missing required parameter(s): {', '.join(missing)}")
    return filtered


def check_account(account):
    if not isinstance(account, str) or not account or "@" in account:
        raise InvalidArgumentError("account must be a string representing an account id")


def single_param(params, key: str, extra: Iterable[str] = ()) -> Dict[str, Any]:
    """Accept either the bare value of `key` or a parameter mapping."""
    if isinstance(params, str):
        return {key: params}
    return check_filter_params(params, (key,) + tuple(extra), (key,))


def segment(value) -> str:
    """Quote a value for use as a single URL path segment."""
    return quote(str(value), safe="")


def gmail_id(value: str) -> str:
    value = str(value)
    return value if value.startswith("gm-") else "gm-" + value


def message_path(params) -> str:
    """
    Path of a message, addressed by Context.IO message id, RFC 822
    Message-ID or Gmail message id. A bare string is a Message-ID.
    """
    if isinstance(params, str):
        return "messages/" + segment(params)
    if "message_id" in params:
        return f"messages/{params['message_id']}"
    if "email_message_id" in params:
        return "messages/" + segment(params["email_message_id"])
    if "gmail_message_id" in params:
        return "messages/" + gmail_id(params["gmail_message_id"])
    raise InvalidArgumentError("message_id, email_message_id or gmail_message_id is required")


def without(params: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if k not in keys}


def add_remove_params(params: Dict[str, Any]) -> Dict[str, Any]:
    result = {k: params[k] for k in ("add", "remove") if k in params}
    if not result:
        raise InvalidArgumentError("must specify at least one of add, remove")
    return result


class ContextIO:

    def __init__(self,
                 consumer_key: str,
                 consumer_secret: str,
                 access_token: Optional[str] = None,
                 access_token_secret: Optional[str] = None, *,
                 config: Optional[ClientConfig] = None,
                 transport: Optional[HttpTransport] = None,
                 request: Optional[ContextIORequest] = None,
                 clock: Callable[[], float] = time.time,
                 nonce_factory: Callable[[], str] = generate_nonce):
        """
        Brief

            Resource level access to the Context.IO 2.0 API. Every method
            validates its parameters (raising `InvalidArgumentError`
            before anything is sent) and returns a `ContextIOResponse`.

        Example

            import contextio
            cio = contextio.ContextIO("key", "secret")
            for message in cio.list_messages("4f01234567", {"limit": 5}).data:
                print(message["subject"])
        """
        self.request = request or ContextIORequest(
            consumer_key, consumer_secret, access_token, access_token_secret,
            config=config, transport=transport, clock=clock, nonce_factory=nonce_factory)

    @classmethod
    def from_config(cls, config: ClientConfig, transport: Optional[HttpTransport] = None) -> "ContextIO":
        if not config.consumer_key or config.consumer_secret is None:
            raise InvalidArgumentError("The configuration holds no consumer credentials")
        return cls(config.consumer_key, config.consumer_secret,
                   config.access_token, config.access_token_secret,
                   config=config, transport=transport)

    # ------------------------ Discovery ------------------------

    def discovery(self, params):
        params = single_param(params, "email")
        return self.request.get(None, "discovery?source_type=imap&email=" + quote(params["email"], safe=""))

    # ---------------------- Connect tokens ---------------------

    def list_connect_tokens(self, account=None):
        return self.request.get(account, "connect_tokens")

    def get_connect_token(self, account=None, params=None):
        params = single_param(params, "token")
        return self.request.get(account, f"connect_tokens/{params['token']}")

    def add_connect_token(self, account=None, params=None):
        params = check_filter_params(params, (
            "service_level", "email", "callback_url", "first_name", "last_name",
            "source_expunge_on_deleted_flag", "source_sync_all_folders", "source_callback_url",
            "source_sync_flags", "source_raw_file_list"), ("callback_url",))
        return self.request.post(account, "connect_tokens", params)

    def delete_connect_token(self, account=None, params=None):
        params = single_param(params, "token")
        return self.request.delete(account, f"connect_tokens/{params['token']}")

    # ---------------------- OAuth providers --------------------

    def list_oauth_providers(self):
        return self.request.get(None, "oauth_providers")

    def get_oauth_provider(self, params):
        params = single_param(params, "provider_consumer_key")
        return self.request.get(None, f"oauth_providers/{params['provider_consumer_key']}")

    def add_oauth_provider(self, params):
        keys = ("type", "provider_consumer_key", "provider_consumer_secret")
        params = check_filter_params(params, keys, keys)
        return self.request.post(None, "oauth_providers", params)

    def delete_oauth_provider(self, params):
        params = single_param(params, "provider_consumer_key")
        return self.request.delete(None, f"oauth_providers/{params['provider_consumer_key']}")

    # ------------------------- Contacts ------------------------

    def list_contacts(self, account, params=None):
        check_account(account)
        params = check_filter_params(params, (
            "active_after", "active_before", "limit", "offset", "search", "sort_by", "sort_order"))
        return self.request.get(account, "contacts", params)

    def get_contact(self, account, params):
        check_account(account)
        params = single_param(params, "email")
        return self.request.get(account, f"contacts/{segment(params['email'])}")

    def list_contact_files(self, account, params):
        check_account(account)
        params = check_filter_params(params, (
            "email", "limit", "offset", "scope", "group_by_revisions", "include_person_info"), ("email",))
        return self.request.get(account, f"contacts/{segment(params['email'])}/files", without(params, "email"))

    def list_contact_messages(self, account, params):
        check_account(account)
        params = check_filter_params(params, (
            "email", "limit", "offset", "scope", "folder", "include_person_info"), ("email",))
        return self.request.get(account, f"contacts/{segment(params['email'])}/messages", without(params, "email"))

    def list_contact_threads(self, account, params):
        check_account(account)
        params = check_filter_params(params, ("email", "limit", "offset", "scope", "folder"), ("email",))
        return self.request.get(account, f"contacts/{segment(params['email'])}/threads", without(params, "email"))

    # --------------------------- Files -------------------------

    def list_files(self, account, params=None):
        check_account(account)
        params = check_filter_params(params, (
            "indexed_before", "indexed_after", "date_before", "date_after", "file_name", "limit",
            "offset", "email", "to", "from", "cc", "bcc", "group_by_revisions", "include_person_info",
            "source"))
        return self.request.get(account, "files", params)

    def get_file(self, account, params):
        check_account(account)
        params = single_param(params, "file_id")
        return self.request.get(account, f"files/{params['file_id']}")

    def get_file_url(self, account, params):
        check_account(account)
        params = single_param(params, "file_id")
        return self.request.get(account, f"files/{params['file_id']}/content", {"as_link": 1}, ["text/uri-list"])

    def get_file_content(self, account, params, save_as: Optional[str] = None):
        """
        Download a file attachment. With `save_as`, the content is also
        written to that path.
        """
        check_account(account)
        params = single_param(params, "file_id")
        response = self.request.get(account, f"files/{params['file_id']}/content", None, [ANY_CONTENT_TYPE])
        if save_as:
            with open(save_as, "wb") as output:
                output.write(response.content)
        return response

    def get_file_changes(self, account, params):
        check_account(account)
        params = check_filter_params(params, ("file_id1", "file_id2", "generate"), ("file_id1", "file_id2"))
        query = {"file_id": params["file_id2"], "generate": params.get("generate", 1)}
        return self.request.get(account, f"files/{params['file_id1']}/changes", query)

    def list_file_revisions(self, account, params):
        check_account(account)
        params = single_param(params, "file_id", ("include_person_info",))
        return self.request.get(account, f"files/{params['file_id']}/revisions", without(params, "file_id"))

    def list_file_related(self, account, params):
        check_account(account)
        params = single_param(params, "file_id", ("include_person_info",))
        return self.request.get(account, f"files/{params['file_id']}/related", without(params, "file_id"))

    # ------------------------- Messages ------------------------

    def list_messages_by_source_and_folder(self, account, params):
        """
        List the messages of one folder. With `async=1` the server answers
        with a job id, whose result is fetched by passing `async_job_id`.
        """
        check_account(account)
        params = check_filter_params(params, (
            "label", "folder", "limit", "offset", "type", "include_body", "include_headers",
            "include_flags", "flag_seen", "async", "async_job_id"), ("label", "folder"))
        path = f"sources/{params['label']}/folders/{params['folder']}/messages"
        if "async_job_id" in params:
            return self.request.get(account, f"{path}/{params['async_job_id']}")
        return self.request.get(account, path, without(params, "label", "folder"))

    def list_messages(self, account, params=None):
        check_account(account)
        params = check_filter_params(params, (
            "subject", "date_before", "date_after", "indexed_after", "indexed_before", "limit",
            "offset", "email", "to", "from", "cc", "bcc", "email_message_id", "type", "body_type",
            "include_body", "include_headers", "include_flags", "folder", "gm_search",
            "include_person_info", "file_name", "file_size_min", "file_size_max", "source",
            "include_thread_size", "include_source", "sort_order"))
        return self.request.get(account, "messages", params)

    def add_message_to_folder(self, account, params):
        """
        Copy (or with `move=True`, move) a message into a folder. With
        `src_file` the message is uploaded from a local RFC 822 file.
        """
        check_account(account)
        params = check_filter_params(params, (
            "dst_source", "dst_label", "dst_folder", "src_file", "flag_seen", "flag_answered",
            "flag_flagged", "flag_deleted", "flag_draft", "move") + MESSAGE_ID_KEYS, ("dst_folder",))
        if "move" in params:
            move = params.pop("move")
            if move is True or move == 1:
                params["move"] = 1
            elif not (move is False or move == 0):
                raise InvalidArgumentError("move parameter must be boolean or 0/1")
        if "src_file" in params:
            src_file = os.path.realpath(params.pop("src_file"))
            if not os.path.isfile(src_file) or not os.access(src_file, os.R_OK):
                raise InvalidArgumentError(f"invalid source file: {src_file}")
            with open(src_file, "rb") as message:
                files = {"message": (os.path.basename(src_file), message)}
                return self.request.post(account, "messages", params, files=files)
        return self.request.post(account, message_path(params), without(params, *MESSAGE_ID_KEYS))

    def get_message(self, account, params):
        check_account(account)
        if isinstance(params, str):
            return self.request.get(account, message_path(params))
        params = check_filter_params(params, MESSAGE_ID_KEYS + (
            "include_person_info", "type", "include_thread_size", "include_body", "include_headers",
            "include_flags", "body_type", "include_source"))
        return self.request.get(account, message_path(params), without(params, *MESSAGE_ID_KEYS))

    def delete_message(self, account, params):
        check_account(account)
        if not isinstance(params, str):
            params = check_filter_params(params, MESSAGE_ID_KEYS)
        return self.request.delete(account, message_path(params))

    def get_message_headers(self, account, params):
        check_account(account)
        if isinstance(params, str):
            return self.request.get(account, message_path(params) + "/headers")
        params = check_filter_params(params, MESSAGE_ID_KEYS + ("raw",))
        query = {"raw": params["raw"]} if "raw" in params else None
        return self.request.get(account, message_path(params) + "/headers", query)

    def get_message_source(self, account, params):
        check_account(account)
        if not isinstance(params, str):
            params = check_filter_params(params, MESSAGE_ID_KEYS)
        return self.request.get(account, message_path(params) + "/source", None, ["message/rfc822", ANY_CONTENT_TYPE])

    def get_message_flags(self, account, params):
        check_account(account)
        if not isinstance(params, str):
            params = check_filter_params(params, MESSAGE_ID_KEYS)
        return self.request.get(account, message_path(params) + "/flags")

    def set_message_flags(self, account, params):
        check_account(account)
        params = check_filter_params(params, MESSAGE_ID_KEYS + MESSAGE_FLAGS)
        flags = {}
        for name in MESSAGE_FLAGS:
            if name in params:
                if not isinstance(params[name], bool):
                    raise InvalidArgumentError(f"{name} must be boolean")
                flags[name] = 1 if params[name] else 0
        if not flags:
            raise InvalidArgumentError(f"must specify at least one of {', '.join(MESSAGE_FLAGS)}")
        return self.request.post(account, message_path(params) + "/flags", flags)

    def get_message_folders(self, account, params):
        check_account(account)
        if not isinstance(params, str):
            params = check_filter_params(params, MESSAGE_ID_KEYS)
        return self.request.get(account, message_path(params) + "/folders")

    def set_message_folders(self, account, params):
        """
        Either replace the folder list (`folders`, sent as JSON) or
        `add`/`remove` single folders.
        """
        check_account(account)
        params = check_filter_params(params, MESSAGE_ID_KEYS + ("add", "remove", "folders"))
        path = message_path(params) + "/folders"
        if "folders" in params:
            if not isinstance(params["folders"], (list, tuple)):
                raise InvalidArgumentError("folders must be a list")
            return self.request.put(account, path, json_body=list(params["folders"]))
        return self.request.post(account, path, add_remove_params(params))

    def get_message_body(self, account, params):
        check_account(account)
        if isinstance(params, str):
            return self.request.get(account, message_path(params) + "/body")
        params = check_filter_params(params, MESSAGE_ID_KEYS + ("type",))
        query = {"type": params["type"]} if "type" in params else None
        return self.request.get(account, message_path(params) + "/body", query)

    def get_message_thread(self, account, params):
        check_account(account)
        if isinstance(params, str):
            return self.request.get(account, message_path(params) + "/thread")
        params = check_filter_params(params, MESSAGE_ID_KEYS + (
            "include_body", "include_headers", "include_flags", "type", "include_person_info"))
        return self.request.get(account, message_path(params) + "/thread", without(params, *MESSAGE_ID_KEYS))

    # -------------------------- Threads ------------------------

    def list_threads(self, account, params=None):
        check_account(account)
        params = check_filter_params(params, (
            "subject", "indexed_after", "indexed_before", "active_after", "active_before",
            "started_after", "started_before", "limit", "offset", "email", "to", "from", "cc", "bcc",
            "folder"))
        return self.request.get(account, "threads", params)

    def get_thread(self, account, params):
        check_account(account)
        params = check_filter_params(params, MESSAGE_ID_KEYS + (
            "gmail_thread_id", "include_body", "include_headers", "include_flags", "type",
            "include_person_info", "limit", "offset"))
        query = without(params, "gmail_thread_id", *MESSAGE_ID_KEYS)
        if any(key in params for key in MESSAGE_ID_KEYS):
            return self.request.get(account, message_path(params) + "/thread", query)
        if "gmail_thread_id" in params:
            return self.request.get(account, "threads/" + gmail_id(params["gmail_thread_id"]), query)
        raise InvalidArgumentError(
            "gmail_thread_id, message_id, email_message_id or gmail_message_id is required")

    def delete_thread(self, account, params):
        check_account(account)
        params = single_param(params, "gmail_thread_id")
        return self.request.delete(account, "threads/" + gmail_id(params["gmail_thread_id"]))

    def set_thread_folders(self, account, params):
        check_account(account)
        params = check_filter_params(params, ("gmail_thread_id", "add", "remove", "folders"), ("gmail_thread_id",))
        path = f"threads/{gmail_id(params['gmail_thread_id'])}/folders"
        if "folders" in params:
            if not isinstance(params["folders"], (list, tuple)):
                raise InvalidArgumentError("folders must be a list")
            return self.request.put(account, path, json_body=list(params["folders"]))
        return self.request.post(account, path, add_remove_params(params))

    # ------------------------- Accounts ------------------------

    def add_account(self, params):
        params = check_filter_params(params, (
            "email", "first_name", "last_name", "type", "server", "username",
            "provider_consumer_key", "provider_token", "provider_token_secret",
            "provider_refresh_token", "service_level", "sync_period", "password", "use_ssl", "port",
            "callback_url", "sync_flags", "raw_file_list", "expunge_on_deleted_flag",
            "migrate_account_id"), ("email",))
        return self.request.post(None, "accounts", params)

    def modify_account(self, account, params):
        check_account(account)
        params = check_filter_params(params, ("first_name", "last_name"))
        return self.request.post(account, "", params)

    def get_account(self, account):
        check_account(account)
        return self.request.get(account)

    def delete_account(self, account):
        check_account(account)
        return self.request.delete(account)

    def list_accounts(self, params=None):
        params = check_filter_params(params, ("limit", "offset", "email", "status_ok", "status"))
        return self.request.get(None, "accounts", params)

    def list_account_email_addresses(self, account):
        check_account(account)
        return self.request.get(account, "email_addresses")

    def add_email_address_to_account(self, account, params):
        check_account(account)
        params = single_param(params, "email_address")
        return self.request.post(account, "email_addresses", params)

    def delete_email_address_from_account(self, account, params):
        check_account(account)
        params = single_param(params, "email_address")
        return self.request.delete(account, "email_addresses/" + segment(params["email_address"]))

    def set_primary_email_address_for_account(self, account, params):
        check_account(account)
        params = single_param(params, "email_address")
        return self.request.post(account, "email_addresses/" + segment(params["email_address"]), {"primary": 1})

    # ------------------------- Sources -------------------------

    def add_source(self, account, params):
        check_account(account)
        params = check_filter_params(params, (
            "type", "email", "server", "username", "provider_consumer_key", "provider_token",
            "provider_token_secret", "provider_refresh_token", "service_level", "sync_period",
            "sync_all_folders", "origin_ip", "sync_folders", "password", "use_ssl", "port",
            "callback_url", "expunge_on_deleted_flag"), ("server", "username"))
        params.setdefault("type", "imap")
        return self.request.post(account, "sources/", params)

    def modify_source(self, account, params):
        check_account(account)
        params = check_filter_params(params, (
            "provider_token", "provider_token_secret", "provider_refresh_token", "password",
            "provider_consumer_key", "label", "mailboxes", "expunge_on_deleted_flag",
            "sync_all_folders", "service_level", "sync_period"), ("label",))
        return self.request.post(account, f"sources/{params['label']}", without(params, "label"))

    def reset_source_status(self, account, params, force: bool = False):
        """Clear an error state of a source. `force` also triggers a status check."""
        check_account(account)
        params = single_param(params, "label")
        body = {"force_status_check": 1} if force else {"status": 1}
        return self.request.post(account, f"sources/{params['label']}", body)

    def list_sources(self, account, params=None):
        check_account(account)
        params = check_filter_params(params, ("status_ok", "status"))
        return self.request.get(account, "sources", params)

    def get_source(self, account, params):
        check_account(account)
        params = single_param(params, "label")
        return self.request.get(account, f"sources/{params['label']}")

    def delete_source(self, account, params):
        check_account(account)
        params = single_param(params, "label")
        return self.request.delete(account, f"sources/{params['label']}")

    def sync_source(self, account, params=None):
        """Trigger a sync of one source (`label`), or of all sources."""
        check_account(account)
        params = check_filter_params(params, ("label",))
        if not params:
            return self.request.post(account, "sync")
        return self.request.post(account, f"sources/{params['label']}/sync")

    def get_sync(self, account, params=None):
        check_account(account)
        params = check_filter_params(params, ("label",))
        if not params:
            return self.request.get(account, "sync")
        return self.request.get(account, f"sources/{params['label']}/sync")

    def list_source_folders(self, account, params):
        check_account(account)
        params = single_param(params, "label", ("include_extended_counts", "no_cache"))
        return self.request.get(account, f"sources/{params['label']}/folders", without(params, "label"))

    def get_source_folder(self, account, params):
        check_account(account)
        params = check_filter_params(params, ("label", "folder"), ("label", "folder"))
        label, folder = segment(params["label"]), segment(params["folder"])
        return self.request.get(account, f"sources/{label}/folders/{folder}")

    def add_folder_to_source(self, account, params):
        check_account(account)
        params = check_filter_params(params, ("label", "folder", "delim"), ("label", "folder"))
        label, folder = segment(params["label"]), segment(params["folder"])
        query = {"delim": params["delim"]} if "delim" in params else None
        return self.request.put(account, f"sources/{label}/folders/{folder}", query=query)

    def delete_folder_from_source(self, account, params):
        check_account(account)
        params = check_filter_params(params, ("label", "folder", "delim"), ("label", "folder"))
        folder = segment(params["folder"])
        query = {"delim": params["delim"]} if "delim" in params else None
        return self.request.delete(account, f"sources/{segment(params['label'])}/folders/{folder}", query)

    def send_message(self, account, params):
        check_account(account)
        params = check_filter_params(params, ("label", "rcpt", "message", "message_id", "gmail_thread_id"), ("label",))
        if not any(key in params for key in ("message_id", "message", "gmail_thread_id")):
            raise InvalidArgumentError("gmail_thread_id, message_id or message is required")
        return self.request.post(account, f"exits/{params['label']}", without(params, "label"))

    # ------------------------- Webhooks ------------------------

    def list_webhooks(self, account):
        check_account(account)
        return self.request.get(account, "webhooks")

    def get_webhook(self, account, params):
        check_account(account)
        params = single_param(params, "webhook_id")
        return self.request.get(account, f"webhooks/{params['webhook_id']}")

    def add_webhook(self, account, params):
        check_account(account)
        params = check_filter_params(params, WEBHOOK_FILTERS, ("callback_url", "failure_notif_url"))
        return self.request.post(account, "webhooks/", params)

    def delete_webhook(self, account, params):
        check_account(account)
        params = single_param(params, "webhook_id")
        return self.request.delete(account, f"webhooks/{params['webhook_id']}")

    def modify_webhook(self, account, params):
        check_account(account)
        params = check_filter_params(params, ("webhook_id", "active"), ("webhook_id", "active"))
        return self.request.post(account, f"webhooks/{params['webhook_id']}", without(params, "webhook_id"))

    def list_application_webhooks(self):
        return self.request.get(None, "webhooks/")

    def get_application_webhook(self, params):
        params = single_param(params, "webhook_id")
        return self.request.get(None, f"webhooks/{params['webhook_id']}")

    def add_application_webhook(self, params):
        params = check_filter_params(params, APPLICATION_WEBHOOK_FILTERS, ("callback_url",))
        return self.request.post(None, "webhooks/", params)

    def delete_application_webhook(self, params):
        params = single_param(params, "webhook_id")
        return self.request.delete(None, f"webhooks/{params['webhook_id']}")

    def modify_application_webhook(self, params):
        params = check_filter_params(params, ("webhook_id",) + APPLICATION_WEBHOOK_FILTERS, ("webhook_id",))
        return self.request.post(None, f"webhooks/{params['webhook_id']}", without(params, "webhook_id"))
