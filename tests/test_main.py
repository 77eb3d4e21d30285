# -*- coding: utf-8 -*-
import json
import socket

from proxylog.main import build_parser, main


def test_missing_listen_address(capsys):
    assert main(['-r', '127.0.0.1:9001']) == 1
    err = capsys.readouterr().err
    assert err.strip() == '错误: no listen address provided'


def test_missing_remote_address(capsys):
    assert main(['-l', '127.0.0.1:9000']) == 1
    assert 'no remote address provided' in capsys.readouterr().err


def test_unknown_positional_argument(capsys):
    assert main(['-l', '127.0.0.1:0', '-r', '127.0.0.1:1', 'extra']) == 1
    assert 'unknown argument: extra' in capsys.readouterr().err


def test_unresolvable_address(capsys):
    assert main(['-l', '127.0.0.1:0', '-r', 'nohostport']) == 1
    assert 'missing port' in capsys.readouterr().err


def test_missing_config_file(tmp_path, capsys):
    assert main(['-f', str(tmp_path / 'nope.yaml')]) == 1
    assert 'config file not found' in capsys.readouterr().err


def test_unopenable_log_file(tmp_path, capsys):
    log_path = tmp_path / 'missing-dir' / 'proxy.log'
    assert main(['-l', '127.0.0.1:0', '-r', '127.0.0.1:1', '-o', str(log_path)]) == 1
    assert capsys.readouterr().err.startswith('错误: ')


def test_bind_failure_logs_fatal_and_exits(tmp_path):
    log_path = tmp_path / 'proxy.log'
    with socket.socket() as busy:
        busy.bind(('127.0.0.1', 0))
        busy.listen()
        port = busy.getsockname()[1]
        status = main(['-l', f'127.0.0.1:{port}', '-r', '127.0.0.1:1', '-o', str(log_path)])

    assert status == 1
    entries = [json.loads(line) for line in log_path.read_text(encoding='utf-8').splitlines()]
    assert entries[-1]['level'] == 'fatal'
    assert entries[-1]['err']


def test_flags_default_to_none_so_config_file_applies():
    args = build_parser().parse_args(['-l', ':1', '-s'])
    assert args.sync is True
    assert args.hex is None
    assert args.verbose is None
