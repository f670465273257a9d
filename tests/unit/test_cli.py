"""Unit tests for console entry points."""

from unittest.mock import patch

import pytest

from haproxy_monitor.cli import main as cli_main


def test_missing_config_exits_before_starting(tmp_path, capsys):
    with patch.object(cli_main, "run_dashboard") as run_dashboard:
        with pytest.raises(SystemExit) as exc:
            cli_main.main(["--config", str(tmp_path / "missing.yaml")])

    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err
    run_dashboard.assert_not_called()


def test_malformed_config_exits(tmp_path, capsys):
    path = tmp_path / "servers.conf"
    path.write_text("only-a-name\n")
    with patch.object(cli_main, "run_dashboard") as run_dashboard:
        with pytest.raises(SystemExit) as exc:
            cli_main.main(["--config", str(path)])

    assert exc.value.code == 1
    assert "bad config entry" in capsys.readouterr().err
    run_dashboard.assert_not_called()


def test_valid_config_runs_dashboard(tmp_path):
    path = tmp_path / "servers.conf"
    path.write_text("lb1 127.0.0.1:8081\n")
    with patch.object(cli_main, "run_dashboard", return_value=0) as run_dashboard, \
            patch.object(cli_main, "setup_logging") as setup_logging:
        with pytest.raises(SystemExit) as exc:
            cli_main.main(["--config", str(path), "--log-file", str(tmp_path / "m.log")])

    assert exc.value.code == 0
    config = run_dashboard.call_args[0][0]
    assert config.targets[0].name == "lb1"
    setup_logging.assert_called_once_with("INFO", str(tmp_path / "m.log"))


def test_relay_parser_defaults():
    args = cli_main.build_relay_parser().parse_args(["/run/haproxy.sock"])
    assert args.socket_path == "/run/haproxy.sock"
    assert args.listen is None
    assert args.poll_interval is None


def test_relay_uses_config_section(tmp_path):
    path = tmp_path / "relay.yaml"
    path.write_text("relay:\n  listen: '127.0.0.1:9100'\n  poll_interval_seconds: 2\n")

    with patch.object(cli_main, "StatRelay") as relay_cls, \
            patch.object(cli_main, "setup_logging"), \
            patch.object(cli_main.asyncio, "run") as run:
        with pytest.raises(SystemExit):
            cli_main.relay_main(["/run/haproxy.sock", "--config", str(path)])

    relay_cls.assert_called_once_with("/run/haproxy.sock", listen="127.0.0.1:9100", poll_interval=2.0)
    run.assert_called_once()
