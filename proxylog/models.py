# -*- coding: utf-8 -*-
"""
数据模型模块
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Address:
    """已解析的 TCP 地址"""
    host: str
    port: int

    def __str__(self) -> str:
        if ':' in self.host:
            return f'[{self.host}]:{self.port}'
        return f'{self.host}:{self.port}'


@dataclass(frozen=True)
class ProxyConfig:
    """代理运行配置，启动时构建一次，之后不再修改"""
    listen: Address
    remote: Address
    sync: bool = False
    hex: bool = False
    no_log: bool = False
    prefix: str = ""


@dataclass(frozen=True)
class LogOptions:
    """日志输出选项"""
    output: Optional[str] = None
    append: bool = False
    color: bool = False
    iso_time: bool = False
    verbose: bool = False


@dataclass
class Session:
    """一次 客户端<->服务器 的会话"""
    id: int
    client_addr: str
    server_addr: str
    prefix: str = ""

    @property
    def name(self) -> str:
        return f"{self.prefix}{self.id}"


class EventKind(Enum):
    """日志事件类型"""
    LISTENER_FAILED = "listener_failed"
    LISTENER_STARTED = "listener_started"
    ACCEPT_FAILED = "accept_failed"
    ACCEPTED = "accepted"
    DIAL_FAILED = "dial_failed"
    ESTABLISHED = "established"
    CLOSED = "closed"
    DATA = "data"
    FATAL = "fatal"


# 写入日志的 message，数据记录与致命错误不带消息
MESSAGES = {
    EventKind.LISTENER_FAILED: "failed to start listener",
    EventKind.LISTENER_STARTED: "listener started",
    EventKind.ACCEPT_FAILED: "accept connection failed",
    EventKind.ACCEPTED: "connection accepted",
    EventKind.DIAL_FAILED: "connect to server failed",
    EventKind.ESTABLISHED: "connection established",
    EventKind.CLOSED: "connection closed",
    EventKind.DATA: "",
    EventKind.FATAL: "",
}

# 这些事件带有 err 字段，没有错误时写 null
_ERROR_SLOT = {EventKind.CLOSED, EventKind.DATA}


def encode_payload(data: bytes, hex: bool = False) -> str:
    """把负载转换成可写入 JSON 的字符串

    原始模式按 UTF-8 解码，无效字节写成 \\xNN，原有的反斜杠写成 \\\\，
    因此日志文本可以无歧义地还原成原始字节。
    """
    if hex:
        return data.hex()
    return data.replace(b'\\', b'\\\\').decode('utf-8', errors='backslashreplace')


@dataclass
class LogEvent:
    """结构化日志事件"""
    kind: EventKind
    fields: Dict[str, Any] = field(default_factory=dict)
    error: Optional[BaseException] = None
    data: Optional[bytes] = None
    hex: bool = False

    @property
    def message(self) -> str:
        return MESSAGES[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典，bytes 负载按 hex 或原始文本编码"""
        result = dict(self.fields)
        if self.data is not None:
            result['data'] = encode_payload(self.data, self.hex)
        if self.error is not None:
            result['err'] = str(self.error) or type(self.error).__name__
        elif self.kind in _ERROR_SLOT:
            result['err'] = None
        return result
