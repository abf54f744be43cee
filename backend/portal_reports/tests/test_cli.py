import json

import httpx
import pytest
from conftest import Upstream
from typer.testing import CliRunner

from portal_reports import cli

runner = CliRunner()


@pytest.fixture()
def patch_fetcher(monkeypatch, make_fetcher):
    def install(upstream: Upstream):
        fetcher = make_fetcher(upstream)
        monkeypatch.setattr(cli, "build_fetcher", lambda settings: fetcher)
        return fetcher

    return install


def test_lists_reports():
    result = runner.invoke(cli.app, ["reports"])
    assert result.exit_code == 0
    assert result.output.split() == ["cdrs", "queueCalls", "queueOutboundCalls", "campaignsActivity"]


def test_fetch_to_csv(tmp_path, patch_fetcher):
    upstream = Upstream({"data": [{"queue_history": ["a", "b"], "call_id": "c1"}]})
    patch_fetcher(upstream)
    target = tmp_path / "out" / "report.csv"
    result = runner.invoke(
        cli.app,
        ["fetch", "queueOutboundCalls", "acme", "--start", "2024-01-01", "--out", str(target)],
    )
    assert result.exit_code == 0, result.output
    assert "Fetched 1 rows for queueOutboundCalls" in result.output
    assert target.read_text() == 'queue_history,call_id\n"[""a""]",c1'
    assert upstream.requests[0].url.params["startDate"] == "1704067200"


def test_fetch_to_json(tmp_path, patch_fetcher):
    patch_fetcher(Upstream([{"id": 1}]))
    target = tmp_path / "report.json"
    result = runner.invoke(cli.app, ["fetch", "cdrs", "acme", "--out", str(target)])
    assert result.exit_code == 0, result.output
    assert json.loads(target.read_text()) == [{"id": 1}]


def test_fetch_prints_rows_without_output_file(patch_fetcher):
    patch_fetcher(Upstream({"data": [{"id": 1, "to": "100"}], "next_start_key": "C"}))
    result = runner.invoke(cli.app, ["fetch", "cdrs", "acme"])
    assert result.exit_code == 0, result.output
    assert "Next start key: C" in result.output
    assert "id\tto\n1\t100" in result.output


def test_invalid_date_is_a_usage_error():
    result = runner.invoke(cli.app, ["fetch", "cdrs", "acme", "--end", "not-a-date"])
    assert result.exit_code != 0


def test_upstream_failure_exits_non_zero(patch_fetcher):
    patch_fetcher(Upstream(httpx.ConnectError("x"), httpx.ConnectError("y"), httpx.ConnectError("z")))
    result = runner.invoke(cli.app, ["fetch", "cdrs", "acme"])
    assert result.exit_code == 1


def test_unknown_report_exits_non_zero(patch_fetcher):
    upstream = Upstream()
    patch_fetcher(upstream)
    result = runner.invoke(cli.app, ["fetch", "bogus", "acme"])
    assert result.exit_code == 1
    assert upstream.requests == []
