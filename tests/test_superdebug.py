import json

from helpers import legacy_kick
from tools.superdebug import build_parser, main


def test_parser_defaults():
    args = build_parser().parse_args(["mc.example.org"])
    assert args.protocol == "ALL"
    assert args.timeout == 5
    assert not args.all_codecs


def test_main_online_server(tcp_server, capsys):
    server = tcp_server(lambda data: legacy_kick(version="1.4.7", motd="Hi"))
    code = main([f"127.0.0.1:{server.port}", "--timeout", "2"])
    out = capsys.readouterr().out
    assert code == 0
    assert "1.4.7" in out
    assert "Hi" in out


def test_main_json_output(closed_port, capsys):
    code = main([f"127.0.0.1:{closed_port}", "--protocol", "LEGACY", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert code == 1
    assert data[0]["online"] is False
    assert data[0]["connection_status"] == "CONNFAIL"


def test_main_bad_target(capsys):
    assert main(["host:port"]) == 2


def test_main_all_codecs(closed_port, capsys):
    code = main([f"127.0.0.1:{closed_port}", "--all-codecs", "--timeout", "0.5"])
    out = capsys.readouterr().out
    assert code == 0
    assert "LEGACY" in out
    assert "BEDROCK" in out
