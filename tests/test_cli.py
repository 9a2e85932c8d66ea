"""CLI tests using Typer's CliRunner; the Prometheus client is swapped for a mock."""

import pytest
from typer.testing import CliRunner

from promplot import cli
from tests.helpers import api_body, fixed_transport, mock_client

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ADDR", "FROM_AGO", "TO_AGO", "STEP", "OUT", "FLOOR", "UNITS", "LOG_LEVEL"):
        monkeypatch.delenv(f"PROMPLOT_{name}", raising=False)


@pytest.fixture
def serve(monkeypatch):
    """Answer every query with the given body."""

    def _serve(body: bytes, status_code: int = 200) -> None:
        monkeypatch.setattr(
            cli, "open_client", lambda config: mock_client(fixed_transport(body, status_code))
        )

    return _serve


class TestUsageErrors:
    def test_missing_query(self):
        result = runner.invoke(cli.app, ["--addr", "http://prometheus.test"])
        assert result.exit_code == 2
        assert "no query specified" in result.output

    def test_missing_address(self):
        result = runner.invoke(cli.app, ["up"])
        assert result.exit_code == 2
        assert "no prometheus address" in result.output

    def test_bad_duration(self):
        result = runner.invoke(cli.app, ["--addr", "http://p", "--from", "banana", "up"])
        assert result.exit_code == 2
        assert "banana" in result.output

    def test_window_inverted(self):
        result = runner.invoke(cli.app, ["--addr", "http://p", "--from", "1s", "--to", "1h", "up"])
        assert result.exit_code == 2

    def test_address_from_environment(self, monkeypatch, serve, tmp_path):
        monkeypatch.setenv("PROMPLOT_ADDR", "http://prometheus.test")
        serve(api_body("scalar", [1, "1"]))
        result = runner.invoke(cli.app, ["--out", str(tmp_path / "q.png"), "scalar(1)"])
        assert result.exit_code == 0


class TestRun:
    def test_matrix_written(self, serve, tmp_path, two_series_matrix):
        serve(api_body("matrix", two_series_matrix))
        out = tmp_path / "query.png"
        result = runner.invoke(
            cli.app,
            ["--addr", "http://prometheus.test", "-o", str(out), "--units", "bytes", "sum", "(up)"],
        )
        assert result.exit_code == 0, result.output
        assert out.exists()
        assert "Plotted 2 points" in result.output

    def test_scalar_writes_no_file(self, serve, tmp_path):
        serve(api_body("scalar", [1000, "7"]))
        out = tmp_path / "query.png"
        result = runner.invoke(
            cli.app, ["--addr", "http://prometheus.test", "-o", str(out), "scalar(7)"]
        )
        assert result.exit_code == 0, result.output
        assert not out.exists()

    def test_backend_error_exits_1(self, serve, tmp_path):
        serve(b'{"status": "error", "errorType": "bad_data", "error": "parse error"}', 400)
        result = runner.invoke(
            cli.app, ["--addr", "http://prometheus.test", "-o", str(tmp_path / "q.png"), "up{"]
        )
        assert result.exit_code == 1
        assert "parse error" in result.output

    def test_unsupported_result_exits_1(self, serve, tmp_path):
        serve(api_body("histogram", []))
        out = tmp_path / "q.png"
        result = runner.invoke(cli.app, ["--addr", "http://prometheus.test", "-o", str(out), "up"])
        assert result.exit_code == 1
        assert "unsupported result type" in result.output
        assert not out.exists()


class TestLoadConfig:
    def test_none_options_fall_back(self, monkeypatch):
        monkeypatch.setenv("PROMPLOT_FLOOR", "0.5")
        config = cli.load_config(addr="http://p", floor=None, out=None)
        assert config.floor == 0.5
        assert config.out == "query.png"

    def test_cli_overrides_environment(self, monkeypatch):
        monkeypatch.setenv("PROMPLOT_UNITS", "bytes")
        assert cli.load_config(addr="http://p", units="duration").units == "duration"
