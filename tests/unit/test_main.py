"""Tests for the process entry point."""

from unittest.mock import patch

import pytest

import main


def test_main_runs_server(monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_DIR", str(tmp_path))
    monkeypatch.setenv("PORT", "9090")

    with patch.object(main, "setup_structured_logging") as setup_logging, patch.object(
        main.uvicorn, "run"
    ) as run:
        main.main()

    setup_logging.assert_called_once_with(level="INFO", json_format=True, log_dir=str(tmp_path))
    app = run.call_args.args[0]
    assert app.state.pool_manager.config.database == "votes_db"
    assert run.call_args.kwargs["port"] == 9090
    assert run.call_args.kwargs["host"] == "0.0.0.0"


def test_main_exits_on_configuration_error(monkeypatch):
    monkeypatch.delenv("DB_PASS")

    with patch.object(main.uvicorn, "run") as run:
        with pytest.raises(SystemExit) as exc_info:
            main.main()

    assert exc_info.value.code == 1
    run.assert_not_called()
