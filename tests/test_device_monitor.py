import json
from unittest.mock import patch

import device_monitor

from fakes import FakeController, make_record


def write_settings(tmp_path, service="Slack"):
    path = tmp_path / "settings.toml"
    path.write_text(
        "[general]\n"
        f"known_macs_file = '{tmp_path / 'macs.txt'}'\n"
        "known_macs = 'aa:bb:cc:dd:ee:01'\n"
        f"database_file = '{tmp_path / 'known.json'}'\n"
        "[notify]\n"
        f"service = '{service}'\n"
    )
    return path


def test_invalid_service_exits_with_error(tmp_path, caplog):
    assert device_monitor.main(["--settings", str(write_settings(tmp_path, "Email"))]) == 1
    assert "Invalid notification service" in caplog.text


def test_single_cycle(tmp_path):
    controller = FakeController([make_record("aa:bb:cc:dd:ee:01"), make_record("aa:bb:cc:dd:ee:02")])
    with patch("device_monitor.get_controller", return_value=controller), \
            patch("notifier.Notifier.send", return_value=True) as send:
        assert device_monitor.main(["--settings", str(write_settings(tmp_path)), "--once"]) == 0

    send.assert_called_once()
    assert "aa:bb:cc:dd:ee:02" in send.call_args.args[0]
    assert json.loads((tmp_path / "known.json").read_text()).keys() == {"aa:bb:cc:dd:ee:02"}


def test_list_clients(tmp_path, capsys):
    controller = FakeController([make_record("aa:bb:cc:dd:ee:01", display_name="TV")])
    with patch("device_monitor.get_controller", return_value=controller):
        assert device_monitor.main(["--settings", str(write_settings(tmp_path)), "--list-clients"]) == 0

    assert capsys.readouterr().out == "aa:bb:cc:dd:ee:01, TV\n"
