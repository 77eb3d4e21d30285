# -*- coding: utf-8 -*-
"""配置管理：解析地址、从 YAML 加载默认配置并合并命令行参数"""
import socket
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .models import Address, LogOptions, ProxyConfig


class ConfigError(Exception):
    """启动配置错误，进程无法继续运行"""


# 配置文件中允许出现的键
OPTION_KEYS = (
    'listen', 'remote', 'output', 'append', 'sync', 'hex',
    'color', 'no_log', 'prefix', 'iso_time', 'verbose',
)


class Config:
    def __init__(self, path: str = None):
        self.path = Path(path) if path else None
        self._data = {}
        if self.path is not None:
            self.load()

    def load(self):
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigError(f"config file not found: {self.path}")
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid config file {self.path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"invalid config file {self.path}: expected a mapping")
        unknown = sorted(set(data) - set(OPTION_KEYS))
        if unknown:
            raise ConfigError(f"unknown config key: {unknown[0]}")
        self._data = data

    def get(self, key, default=None):
        return self._data.get(key, default)

    def as_dict(self):
        return dict(self._data)

    def merged(self, overrides: Dict[str, Any]) -> Dict[str, Any]:
        """命令行中显式给出的值 (非 None) 覆盖配置文件"""
        result = self.as_dict()
        result.update({k: v for k, v in overrides.items() if v is not None})
        return result


def split_host_port(value: str) -> Tuple[str, str]:
    """拆分 host:port，支持 [v6]:port 和省略主机的 :port"""
    host, sep, port = value.rpartition(':')
    if not sep:
        raise ConfigError(f"address {value}: missing port in address")
    if host.startswith('['):
        if not host.endswith(']'):
            raise ConfigError(f"address {value}: missing ']' in address")
        host = host[1:-1]
    elif ':' in host:
        raise ConfigError(f"address {value}: too many colons in address")
    if not port:
        raise ConfigError(f"address {value}: missing port in address")
    return host, port


def resolve_tcp_address(value: str) -> Address:
    """把 host:port 解析为 TCP 地址，主机为空时表示所有网卡"""
    host, port = split_host_port(value)
    try:
        infos = socket.getaddrinfo(host or None, port, type=socket.SOCK_STREAM,
                                   flags=socket.AI_PASSIVE if not host else 0)
    except (socket.gaierror, UnicodeError) as e:
        raise ConfigError(f"lookup {value}: {e}")
    sockaddr = infos[0][4]
    if not host:
        return Address('', sockaddr[1])
    return Address(sockaddr[0], sockaddr[1])


def _flag(settings: Dict[str, Any], key: str) -> bool:
    return bool(settings.get(key) or False)


def build_proxy_config(settings: Dict[str, Any]) -> ProxyConfig:
    """校验合并后的配置并构建 ProxyConfig"""
    listen = settings.get('listen')
    remote = settings.get('remote')
    if not listen:
        raise ConfigError("no listen address provided")
    if not remote:
        raise ConfigError("no remote address provided")
    prefix = settings.get('prefix') or ""
    return ProxyConfig(
        listen=resolve_tcp_address(str(listen)),
        remote=resolve_tcp_address(str(remote)),
        sync=_flag(settings, 'sync'),
        hex=_flag(settings, 'hex'),
        no_log=_flag(settings, 'no_log'),
        prefix=str(prefix),
    )


def build_log_options(settings: Dict[str, Any]) -> LogOptions:
    output: Optional[str] = settings.get('output') or None
    return LogOptions(
        output=output,
        append=_flag(settings, 'append'),
        color=_flag(settings, 'color'),
        iso_time=_flag(settings, 'iso_time'),
        verbose=_flag(settings, 'verbose'),
    )
