import json

from typer.testing import CliRunner

from ajax_transport.cli import app, parse_headers, parse_pairs

runner = CliRunner()

BASE_URL = "https://api.test"


def test_get_cli_prints_json(requests_mock):
    matcher = requests_mock.get(f"{BASE_URL}/items?q=1", json=[{"id": 1}])

    result = runner.invoke(app, ["get", f"{BASE_URL}/items", "--data", "q=1", "--quiet"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == [{"id": 1}]
    assert matcher.last_request.headers["X-Requested-With"] == "XMLHttpRequest"


def test_get_cli_uses_env_base_url(requests_mock):
    requests_mock.get(f"{BASE_URL}/ping", text="pong")

    result = runner.invoke(app, ["get", "/ping", "-q"], env={"AJAX_BASE_URL": BASE_URL})

    assert result.exit_code == 0
    assert result.stdout.strip() == "pong"


def test_post_cli_urlencoded(requests_mock):
    matcher = requests_mock.post(f"{BASE_URL}/items", status_code=201, json={"id": 9})

    result = runner.invoke(
        app,
        [
            "post",
            f"{BASE_URL}/items",
            "-d",
            "name=demo",
            "--type",
            "urlencoded",
            "-H",
            "X-Token: abc",
            "-q",
        ],
    )

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"id": 9}
    request = matcher.last_request
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded; charset=utf-8"
    assert request.headers["X-Token"] == "abc"
    assert b"".join(request.body) == b"name=demo"


def test_post_cli_json_body(requests_mock):
    matcher = requests_mock.put(f"{BASE_URL}/items/1", json={})

    result = runner.invoke(
        app,
        ["post", f"{BASE_URL}/items/1", "-X", "PUT", "--json-body", '{"tags": ["a"]}', "-q"],
    )

    assert result.exit_code == 0
    assert b"".join(matcher.last_request.body) == b'{"tags":["a"]}'


def test_post_cli_rejected_response_exits_nonzero(requests_mock):
    requests_mock.post(f"{BASE_URL}/items", status_code=404, json={"error": "missing"})

    result = runner.invoke(app, ["post", f"{BASE_URL}/items", "-d", "a=1", "-q"])

    assert result.exit_code == 1
    assert "status 404" in result.stderr
    assert json.loads(result.stdout) == {"error": "missing"}


def test_post_cli_invalid_ratio_is_a_usage_failure():
    result = runner.invoke(app, ["post", f"{BASE_URL}/items", "--ratio", "150", "-q"])

    assert result.exit_code == 2
    assert "upload_ratio" in result.stderr


def test_post_cli_unknown_type_rejected():
    result = runner.invoke(app, ["post", f"{BASE_URL}/items", "--type", "xml"])

    assert result.exit_code != 0


def test_upload_cli_with_preset_files(requests_mock, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    matcher = requests_mock.post(f"{BASE_URL}/upload", json={"stored": 1})

    result = runner.invoke(
        app,
        [
            "upload",
            f"{BASE_URL}/upload",
            "--file",
            str(path),
            "--field-name",
            "docs",
            "-d",
            "kind=note",
            "-q",
        ],
    )

    assert result.exit_code == 0
    request = matcher.last_request
    assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
    body = b"".join(request.body)
    assert b'name="docs"; filename="notes.txt"' in body
    assert b'name="kind"' in body


def test_upload_cli_rejects_unaccepted_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")

    result = runner.invoke(
        app,
        ["upload", f"{BASE_URL}/upload", "--file", str(path), "--accept", "image/*", "-q"],
    )

    assert result.exit_code != 0


def test_cli_env_cert_with_no_verify_rejected(tmp_path):
    cert = tmp_path / "ca.pem"
    cert.write_text("dummy", encoding="utf-8")

    result = runner.invoke(
        app,
        ["get", f"{BASE_URL}/items"],
        env={"AJAX_CA_CERT": str(cert), "AJAX_VERIFY_SSL": "0"},
    )

    assert result.exit_code != 0
    assert "Cannot combine --cert with --no-verify" in result.stderr


def test_parse_helpers():
    assert parse_pairs(["a=1", "b=x=y", "flag"]) == {"a": "1", "b": "x=y", "flag": True}
    assert parse_pairs(["n=2", "on=true"], coerce=True) == {"n": 2, "on": True}
    assert parse_headers(["Accept: text/plain"]) == {"Accept": "text/plain"}
