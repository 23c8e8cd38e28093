import json

import httpx
import pytest

from app.main import build_parser, main

from odoo_fakes import central_day

DAY = "2024-06-01"


@pytest.fixture
def cli_db(monkeypatch, session_factory):
    monkeypatch.setattr("app.main.SessionLocal", session_factory)
    return session_factory


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])

    args = build_parser().parse_args(["sync", "3", "--date", DAY])
    assert (args.command, args.connection_id, args.date) == ("sync", 3, DAY)


def test_connections_command(cli_db, connection, capsys):
    assert main(["connections"]) == 0

    listed = json.loads(capsys.readouterr().out)
    assert [c["name"] for c in listed] == ["Main Odoo"]
    assert "api_key" not in listed[0]


def test_sync_then_list(cli_db, connection, fake_odoo, capsys):
    fake_odoo.load(central_day())

    assert main(["sync", str(connection.id), "--date", DAY]) == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["synced"] == 1
    assert stats["locations"] == ["Central"]

    assert main(["summaries", "--date", DAY]) == 0
    summaries = json.loads(capsys.readouterr().out)
    assert len(summaries) == 1
    assert summaries[0]["pos_name"] == "Central"
    assert summaries[0]["summary_date"] == DAY
    assert summaries[0]["total_amount"] == 150.0

    assert main(["jobs", "--connection-id", str(connection.id)]) == 0
    jobs = json.loads(capsys.readouterr().out)
    assert [j["status"] for j in jobs] == ["success"]


def test_unknown_connection_exits_with_error(cli_db, capsys):
    assert main(["sync", "999", "--date", DAY]) == 1

    error = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert error["success"] is False
    assert error["error"]["error_type"] == "NotFound"


def last_error(capsys) -> dict:
    return json.loads(capsys.readouterr().err.strip().splitlines()[-1])["error"]


def test_invalid_date_exits_with_error(cli_db, connection, capsys):
    assert main(["sync", str(connection.id), "--date", "01/06/2024"]) == 1
    assert last_error(capsys)["error_type"] == "ValueError"


def test_invalid_url_exits_with_error(capsys):
    argv = ["test-connection", "--url", "not a url", "--database", "prod",
            "--username", "sync", "--api-key", "k"]
    assert main(argv) == 1
    assert last_error(capsys)["error_type"] == "ValidationError"


def test_http_error_status_exits_with_error(fake_odoo, capsys):
    fake_odoo.handler = lambda request: httpx.Response(502, text="Bad Gateway")
    argv = ["test-connection", "--url", "https://odoo.example.com", "--database", "prod",
            "--username", "sync", "--api-key", "k"]

    assert main(argv) == 1
    error = last_error(capsys)
    assert error["error_type"] == "HTTPStatusError"
    assert "502" in error["message"]
