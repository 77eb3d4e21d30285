# -*- coding: utf-8 -*-
import pytest

from proxylog.config import (
    Config, ConfigError, build_log_options, build_proxy_config,
    resolve_tcp_address, split_host_port,
)
from proxylog.models import Address


@pytest.mark.parametrize('value, expected', [
    ('127.0.0.1:80', ('127.0.0.1', '80')),
    ('[::1]:8080', ('::1', '8080')),
    (':9000', ('', '9000')),
    ('localhost:http', ('localhost', 'http')),
])
def test_split_host_port(value, expected):
    assert split_host_port(value) == expected


@pytest.mark.parametrize('value', ['localhost', '127.0.0.1:', '::1:80', '[::1:80'])
def test_split_host_port_rejects_bad_addresses(value):
    with pytest.raises(ConfigError):
        split_host_port(value)


def test_resolve_tcp_address():
    assert resolve_tcp_address('127.0.0.1:8080') == Address('127.0.0.1', 8080)
    assert resolve_tcp_address(':0') == Address('', 0)


def test_resolve_failure_is_config_error():
    with pytest.raises(ConfigError):
        resolve_tcp_address('127.0.0.1:no-such-service-name')


def test_build_proxy_config_requires_addresses():
    with pytest.raises(ConfigError, match='no listen address provided'):
        build_proxy_config({'remote': '127.0.0.1:1'})
    with pytest.raises(ConfigError, match='no remote address provided'):
        build_proxy_config({'listen': '127.0.0.1:1'})


def test_build_proxy_config_flags():
    config = build_proxy_config({
        'listen': '127.0.0.1:9000', 'remote': '127.0.0.1:9001',
        'sync': True, 'hex': True, 'prefix': 'p',
    })
    assert config.listen == Address('127.0.0.1', 9000)
    assert config.remote == Address('127.0.0.1', 9001)
    assert config.sync and config.hex
    assert not config.no_log
    assert config.prefix == 'p'


def test_yaml_config_merged_with_overrides(tmp_path):
    path = tmp_path / 'proxy.yaml'
    path.write_text('listen: "127.0.0.1:9000"\nremote: "127.0.0.1:9001"\nhex: true\nverbose: true\n',
                    encoding='utf-8')
    config = Config(str(path))
    assert config.get('hex') is True

    settings = config.merged({'remote': '127.0.0.1:9002', 'hex': None, 'sync': True})
    assert settings['remote'] == '127.0.0.1:9002'
    assert settings['hex'] is True
    assert settings['sync'] is True
    assert build_log_options(settings).verbose is True


def test_empty_yaml_config(tmp_path):
    path = tmp_path / 'empty.yaml'
    path.write_text('', encoding='utf-8')
    assert Config(str(path)).as_dict() == {}


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError, match='not found'):
        Config(str(tmp_path / 'missing.yaml'))


def test_unknown_config_key(tmp_path):
    path = tmp_path / 'bad.yaml'
    path.write_text('listen: ":1"\ntimeout: 3\n', encoding='utf-8')
    with pytest.raises(ConfigError, match='timeout'):
        Config(str(path))


def test_no_config_file():
    assert Config().as_dict() == {}
