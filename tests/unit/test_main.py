"""Tests for the command line entry point."""

import pytest

from hope_erp.app.main import main, parse_args


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """No config file, no backend credentials, data kept under tmp_path."""
    for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "HOPE_ERP_CONFIG", "HOPE_ERP_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("HOPE_ERP_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestParseArgs:
    def test_show(self):
        args = parse_args(["show", "scheduler", "--period", "month", "--region", "3"])
        assert args.command == "show"
        assert args.screen == "scheduler"
        assert args.period == "month"
        assert args.region == "3"
        assert args.no_persist is False

    def test_watch(self):
        args = parse_args(["--no-persist", "watch", "kpis", "--count", "2"])
        assert args.command == "watch"
        assert args.count == 2
        assert args.interval is None
        assert args.no_persist is True

    def test_cache_reset_all(self):
        args = parse_args(["cache", "reset"])
        assert args.cache_command == "reset"
        assert args.resource is None

    def test_unknown_screen(self):
        with pytest.raises(SystemExit):
            parse_args(["show", "payroll"])


class TestMain:
    def test_empty_cache_list(self, cli_env, capsys):
        assert main(["cache", "list"]) == 0
        assert "No cached availability." in capsys.readouterr().out

    def test_unconfigured_backend_reports_unreachable(self, cli_env, capsys):
        assert main(["--no-persist", "show", "manufacturers"]) == 1

        out = capsys.readouterr().out
        assert "== Manufacturers ==" in out
        assert "Error: Manufacturers is not currently reachable." in out

    def test_unavailability_survives_restarts(self, cli_env, capsys):
        main(["show", "manufacturers"])
        capsys.readouterr()

        main(["cache", "list"])
        assert "manufacturers  unavailable" in capsys.readouterr().out

        main(["show", "manufacturers"])
        assert "Manufacturers is not configured yet." in capsys.readouterr().out

        assert main(["cache", "reset", "manufacturers"]) == 0
        assert "Cleared availability for manufacturers." in capsys.readouterr().out

        main(["cache", "list"])
        assert "No cached availability." in capsys.readouterr().out

    def test_disabled_screen(self, cli_env, capsys):
        (cli_env / "config.yaml").write_text("screens:\n  inventory:\n    enabled: false\n")

        assert main(["--no-persist", "show", "inventory"]) == 1
        assert "disabled" in capsys.readouterr().err
