# -*- coding: utf-8 -*-
"""
proxylog包 - 记录通信内容的 TCP 转发代理

监听本地地址，为每个客户端连接建立一条到固定远程地址的新连接，
在两者之间双向转发字节，并可按会话记录每一次写入的数据。

主要功能：
- 字节透明的双向转发
- 按会话编号记录数据 (原始文本或十六进制)
- 同步/并发两种会话处理模式
- JSON 或彩色控制台日志格式

使用方法：
```python
from proxylog import ProxyConfig, LogSink, resolve_tcp_address, serve

config = ProxyConfig(resolve_tcp_address('127.0.0.1:9000'), resolve_tcp_address('127.0.0.1:9001'))
await serve(config, LogSink())
```
"""

# 导入主要模块
from .models import Address, ProxyConfig, LogOptions, Session, EventKind, LogEvent
from .config import Config, ConfigError, resolve_tcp_address, build_proxy_config, build_log_options
from .logger import LogSink, setup_logging
from .streams import Connection, LoggingConnection
from .relay import TaskTracker, copy, duplex
from .session import SessionHandler
from .dispatcher import ConnectionQueue, ConnectionDispatcher
from .listener import ProxyListener, serve
from .main import run

# 版本信息
__version__ = '1.0.0'

# 导出列表
__all__ = [
    # 数据模型
    'Address',
    'ProxyConfig',
    'LogOptions',
    'Session',
    'EventKind',
    'LogEvent',
    # 配置
    'Config',
    'ConfigError',
    'resolve_tcp_address',
    'build_proxy_config',
    'build_log_options',
    # 日志
    'LogSink',
    'setup_logging',
    # 核心组件
    'Connection',
    'LoggingConnection',
    'TaskTracker',
    'copy',
    'duplex',
    'SessionHandler',
    'ConnectionQueue',
    'ConnectionDispatcher',
    'ProxyListener',
    'serve',
    # 主入口
    'run'
]
