import sys
import inspect
from argparse import ArgumentParser, RawTextHelpFormatter

from .errors import ContextIOError
from .request import RenderMode, build_signed_request
from .tokens import ConsumerToken, TokenCredential


def argdoc(s: str):
    return "\n"+inspect.cleandoc(s)+"\n\n"


def less_indent_formatter(prog):
    return RawTextHelpFormatter(prog, max_help_position=8, width=80)


def parse_param(entry: str):
    name, sep, value = entry.partition("=")
    if not sep or not name:
        raise ContextIOError(f"Parameters must look like name=value, got `{entry}`")
    return name, value


def main(argv=None) -> int:
    parser = ArgumentParser(
        "OAuth 1.0 Request Signer",
        formatter_class=less_indent_formatter)
    parser.add_argument("-k", "--key", required=True, metavar="consumer-key", help=argdoc("""
                        OAuth consumer key.
                        """))
    parser.add_argument("-s", "--secret", required=True, metavar="consumer-secret", help=argdoc("""
                        OAuth consumer secret.
                        """))
    parser.add_argument("-t", "--token", metavar="token", help=argdoc("""
                        Access token key. Omit for two-legged requests.
                        """))
    parser.add_argument("--token-secret", metavar="token-secret", default="", help=argdoc("""
                        Access token secret. Only used together with --token.
                        """))
    parser.add_argument("-m", "--mode", choices=("header", "url"), default="header", help=argdoc("""
                        Where the oauth_* parameters go:

                          header : Print an Authorization header value.
                             url : Print the signed URL.
                        """))
    parser.add_argument("--signature-method", default="HMAC-SHA1", metavar="name", help=argdoc("""
                        Signature method, HMAC-SHA1 or HMAC-SHA256.
                        """))
    parser.add_argument("method", metavar="METHOD", help=argdoc("""
                        HTTP method: GET, POST, PUT or DELETE.
                        """))
    parser.add_argument("url", metavar="URL", help=argdoc("""
                        Target URL. A query string takes part in the signature.
                        """))
    parser.add_argument("params", nargs="*", metavar="name=value", help=argdoc("""
                        Application parameters. Repeat a name to send several
                        values.

                        Example:
                            GET https://api.context.io/2.0/accounts limit=10
                        """))

    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    try:
        consumer = ConsumerToken(args.key, args.secret)
        token = TokenCredential(args.token, args.token_secret) if args.token else None
        signed = build_signed_request(
            consumer,
            token,
            args.method,
            args.url,
            [parse_param(entry) for entry in args.params],
            mode=RenderMode.HEADER if args.mode == "header" else RenderMode.URL,
            signature_method=args.signature_method)
    except ContextIOError as e:
        print(f"[ERROR] {e}")
        return 1
    print(f"Base string: {signed.base_string}")
    if args.mode == "header":
        print(f"URL: {signed.url}")
        print(f"Authorization: {signed.headers['Authorization']}")
        if signed.body:
            print(f"Body: {signed.body}")
    else:
        print(f"URL: {signed.full_url}")
    return 0


if __name__ == "__main__":
    exit(main())
