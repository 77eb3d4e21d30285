# -*- coding: utf-8 -*-
"""
连接封装模块

Connection 把 asyncio 的 StreamReader/StreamWriter 合成一个双向连接；
LoggingConnection 在其外层记录每一次写入。
"""

import asyncio
import socket
from typing import Optional

from .logger import LogSink
from .models import Address, EventKind

BUFFER_SIZE = 32 * 1024

# 关闭时等待写缓冲排空的时间 (秒)
CLOSE_TIMEOUT = 0.25


def format_peer(peer) -> str:
    """把 peername 转为 host:port 字符串"""
    if isinstance(peer, tuple) and len(peer) >= 2:
        return str(Address(peer[0], peer[1]))
    return str(peer)


class Connection:
    """双向字节流连接"""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self._closed = False

    @classmethod
    async def open(cls, address: Address) -> 'Connection':
        """连接到远程地址，失败时抛出 OSError"""
        reader, writer = await asyncio.open_connection(address.host or 'localhost', address.port)
        return cls(reader, writer)

    @classmethod
    async def from_socket(cls, sock: socket.socket) -> 'Connection':
        """包装一个已经 accept 的套接字"""
        reader, writer = await asyncio.open_connection(sock=sock)
        return cls(reader, writer)

    @property
    def peer_address(self) -> str:
        return format_peer(self.writer.get_extra_info('peername'))

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self, size: int = BUFFER_SIZE) -> bytes:
        return await self.reader.read(size)

    async def write(self, data: bytes) -> int:
        self.writer.write(data)
        await self.writer.drain()
        return len(data)

    async def close(self, timeout: float = CLOSE_TIMEOUT):
        """关闭连接，重复调用无副作用

        对端不再读取时写缓冲无法排空，超时后直接丢弃缓冲并断开。
        """
        if self._closed:
            return
        self._closed = True
        self.writer.close()
        try:
            await asyncio.wait_for(self.writer.wait_closed(), timeout=timeout)
        except asyncio.TimeoutError:
            self.writer.transport.abort()
        except (OSError, RuntimeError):
            return


class LoggingConnection:
    """记录写入数据的连接包装器

    读取原样透传；每次写入都先交给底层连接，再输出一条数据事件，
    返回值和异常与底层连接完全一致。
    """

    def __init__(self, conn, sink: LogSink, hex: bool = False):
        self.conn = conn
        self.sink = sink
        self.hex = hex

    @property
    def peer_address(self) -> str:
        return self.conn.peer_address

    @property
    def closed(self) -> bool:
        return self.conn.closed

    async def read(self, size: int = BUFFER_SIZE) -> bytes:
        return await self.conn.read(size)

    async def write(self, data: bytes) -> int:
        error: Optional[BaseException] = None
        try:
            return await self.conn.write(data)
        except BaseException as e:
            error = e
            raise
        finally:
            self.sink.event(EventKind.DATA, error=error, data=bytes(data), hex=self.hex)

    async def close(self):
        await self.conn.close()
