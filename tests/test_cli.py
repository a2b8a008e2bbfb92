import pytest
from dotenv import dotenv_values

from klctl import cli


@pytest.fixture
def config(tmp_path):
    return str(tmp_path / "klctl.env")


@pytest.fixture
def connect(mocker, make_transport):
    """Route the CLI's hub connection to a scripted transport."""
    def factory(*replies, **kwargs):
        transport = make_transport(*replies, **kwargs)
        mocker.patch("klctl.cli.TCPTransport", return_value=transport)
        return transport
    return factory


def run(config, *argv):
    return cli.run(["--config", config, *argv])


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["toggle"],
        ["frobnicate", "lamp"],
        ["toggle", "two words"],
        ["send", "--rf", "abc", "189"],
        ["add", "strip", "tasmota_strip", "powerstrip"],
        ["add", "lamp", "tasmota_lamp", "toaster"],
        ["add", "porch", "-m", "5592371", "189", "extra"],
        ["update", "name", "lamp"],
        ["update", "colour", "lamp", "red"],
    ],
)
def test_usage_errors_never_connect(config, mocker, capsys, argv):
    transport_cls = mocker.patch("klctl.cli.TCPTransport")

    assert run(config, *argv) == 1

    transport_cls.assert_not_called()
    assert "error" in capsys.readouterr().err


def test_set_device(config, connect, capsys):
    transport = connect("KL/0.3 201 Set lamp")

    assert run(config, "set", "lamp", "power", "on") == 0

    assert transport.written == ["SET lamp POWER ON KL/0.3", "Q"]
    assert "Successfully Set Device 'lamp' POWER ON" in capsys.readouterr().out


def test_connects_to_configured_hub(config, mocker, make_transport):
    transport_cls = mocker.patch("klctl.cli.TCPTransport", return_value=make_transport("KL/0.1 200 OK"))
    with open(config, "w") as fh:
        fh.write("KL_HUB_HOST=192.168.1.20\nKL_HUB_PORT=1200\nKL_PROTOCOL_VERSION=0.1\n")

    assert run(config, "toggle", "porch") == 0

    transport_cls.assert_called_once_with(host="192.168.1.20", port=1200)
    assert transport_cls.return_value.written == ["TOGGLE porch KL/0.1", "Q"]


def test_toggle_rejected(config, connect, capsys):
    transport = connect("KL/0.3 406 No such device")

    assert run(config, "toggle", "porch") == 1

    assert transport.written == ["TOGGLE porch KL/0.3", "Q"]
    assert "Unable to toggle device 'porch': No such device (status 406)" in capsys.readouterr().err


def test_list(config, connect, capsys):
    connect("KL/0.3 204 Number of Devices 2", "porch 5592371 5592380 189", "lamp tasmota_lamp 4")

    assert run(config, "list") == 0

    out = capsys.readouterr().out.splitlines()
    assert out == ["Here is the list:", "porch 5592371 5592380 189", "lamp tasmota_lamp 4"]


def test_status(config, connect, capsys):
    connect("KL/0.3 206 Status lamp", "POWER ON", ".")

    assert run(config, "status", "lamp") == 0

    assert capsys.readouterr().out.splitlines() == ["lamp:", "POWER ON"]


def test_send_rf_code(config, connect, capsys):
    transport = connect("KL/0.3 205 Transmitted")

    assert run(config, "send", "--rf", "5592371", "189") == 0

    assert transport.written[0] == "TRANSMIT 5592371 189 KL/0.3"


def test_add_mqtt_device(config, connect, capsys):
    transport = connect("KL/0.3 202 Added strip")

    assert run(config, "add", "strip", "tasmota_strip", "strip", "3") == 0

    assert transport.written[0] == "ADD strip tasmota_strip 1 3 KL/0.3"
    assert "POWER1, POWER2, POWER3" in capsys.readouterr().out


def test_add_by_scan(config, connect, capsys):
    transport = connect(
        "KL/0.3 200 Scanning",
        "KL/0.3 200 Code: 5592371 Pulse: 189",
        "KL/0.3 202 Added porch",
    )

    assert run(config, "add", "porch") == 0

    assert transport.written == ["SNIFF KL/0.3", "ADD porch 5592371 5592380 189 KL/0.3", "Q"]
    out = capsys.readouterr().out
    assert "Scanning, please press the desired button" in out
    assert "Added Device 'porch' Successfully (on=5592371 off=5592380 pulse=189)" in out


def test_add_manual_invalid_code(config, connect, capsys):
    transport = connect()

    assert run(config, "add", "porch", "-m", "5592375", "189") == 1

    assert transport.written == ["Q"]
    assert "Code 5592375 is invalid, not adding." in capsys.readouterr().err


def test_scan_reports_kind(config, connect, capsys):
    connect("KL/0.3 200 Scanning", "KL/0.3 200 Code: 5592380 Pulse: 189")

    assert run(config, "scan") == 0

    assert "Scanning successful, Code=5592380, Pulse=189, Off was scanned." in capsys.readouterr().out


def test_scan_refused(config, connect, capsys):
    transport = connect("KL/0.3 404 Unknown")

    assert run(config, "scan") == 1

    assert transport.written == ["SNIFF KL/0.3", "Q"]
    assert "Unable to scan" in capsys.readouterr().err


def test_update_state(config, connect, capsys):
    transport = connect("KL/0.3 210 Refreshed")

    assert run(config, "update", "state", "lamp") == 0

    assert transport.written[0] == "UPDATE STATE lamp KL/0.3"


def test_connection_failure(config, connect, capsys):
    connect(fail_open=True)

    assert run(config, "toggle", "porch") == 1

    assert "Connection error" in capsys.readouterr().err


def test_malformed_reply(config, connect, capsys):
    connect("KL/0.3 OK")

    assert run(config, "delete", "porch") == 1

    assert "unreadable reply" in capsys.readouterr().err


def test_bad_config_value(config, connect, capsys):
    connect()
    with open(config, "w") as fh:
        fh.write("KL_HUB_PORT=99999\n")

    assert run(config, "list") == 1

    assert "Configuration error" in capsys.readouterr().err


def test_ip_and_port_write_config(config, mocker, capsys):
    transport_cls = mocker.patch("klctl.cli.TCPTransport")

    assert run(config, "ip", "192.168.1.20") == 0
    assert run(config, "port", "1200") == 0

    transport_cls.assert_not_called()
    assert dotenv_values(config) == {"KL_HUB_HOST": "192.168.1.20", "KL_HUB_PORT": "1200"}
    out = capsys.readouterr().out
    assert "Hub IP set to 192.168.1.20" in out
    assert "Hub port set to 1200" in out


@pytest.mark.parametrize("argv", [["ip", "hub.local"], ["port", "0"]])
def test_ip_and_port_validation(config, argv):
    assert run(config, *argv) == 1


def test_main_exits_with_status(mocker):
    mocker.patch("klctl.cli.run", return_value=1)
    with pytest.raises(SystemExit) as excinfo:
        cli.main()
    assert excinfo.value.code == 1


def test_ip_with_unwritable_config(tmp_path, capsys):
    path = str(tmp_path / "missing" / "klctl.env")

    assert cli.run(["--config", path, "ip", "10.0.0.1"]) == 1

    assert "Configuration error" in capsys.readouterr().err
