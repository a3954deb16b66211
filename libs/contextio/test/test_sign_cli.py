import pytest

from contextio.canonical import parse_authorization_header
from contextio.sign import main

URL = "https://api.context.io/2.0/accounts"


def output_lines(capsys):
    return dict(line.split(": ", 1) for line in capsys.readouterr().out.splitlines())


def test_header_mode(capsys):
    assert main(["-k", "ck", "-s", "cs", "GET", URL, "limit=10"]) == 0
    printed = output_lines(capsys)
    assert printed["URL"] == URL + "?limit=10"
    assert printed["Base string"].startswith("GET&https%3A%2F%2Fapi.context.io%2F2.0%2Faccounts&limit%3D10")
    oauth = parse_authorization_header(printed["Authorization"])
    assert oauth["oauth_consumer_key"] == "ck"
    assert "oauth_token" not in oauth


def test_post_prints_body(capsys):
    assert main(["-k", "ck", "-s", "cs", "-t", "tk", "--token-secret", "ts",
                 "POST", URL, "email=jim@example.com"]) == 0
    printed = output_lines(capsys)
    assert printed["Body"] == "email=jim%40example.com"
    assert parse_authorization_header(printed["Authorization"])["oauth_token"] == "tk"


def test_url_mode(capsys):
    assert main(["-k", "ck", "-s", "cs", "-m", "url", "--signature-method", "HMAC-SHA256",
                 "DELETE", URL + "/abc"]) == 0
    printed = output_lines(capsys)
    assert "Authorization" not in printed
    assert printed["URL"].startswith(URL + "/abc?oauth_consumer_key=ck&")
    assert "oauth_signature_method=HMAC-SHA256" in printed["URL"]


@pytest.mark.parametrize("argv", [
    ["-k", "ck", "-s", "cs", "GET", URL, "limit"],
    ["-k", "ck", "-s", "cs", "PATCH", URL],
    ["-k", "ck", "-s", "cs", "--signature-method", "PLAINTEXT", "GET", URL],
    ["-k", "ck", "-s", "cs", "GET", "ftp://example.com/"],
])
def test_errors_exit_with_one(capsys, argv):
    assert main(argv) == 1
    assert capsys.readouterr().out.startswith("[ERROR] ")


def test_missing_credentials_is_a_usage_error():
    with pytest.raises(SystemExit) as error:
        main(["GET", URL])
    assert error.value.code == 2
