# -*- coding: utf-8 -*-
"""
测试辅助工具：内存连接、记录事件的 sink、本地服务器
"""

import asyncio
import logging

from proxylog.listener import ProxyListener
from proxylog.logger import LogSink
from proxylog.models import Address, ProxyConfig

LOOPBACK = '127.0.0.1'
TIMEOUT = 5


class RecordingSink(LogSink):
    """把事件保存在列表中而不是写入日志"""

    def __init__(self):
        super().__init__(logging.getLogger('proxylog.test'))
        self.records = []

    def emit(self, event):
        self.records.append(event)

    def of_kind(self, kind):
        return [r for r in self.records if r.kind == kind]

    def kinds(self):
        return [r.kind for r in self.records]

    def payload(self, src):
        """拼接某个方向上记录的全部数据"""
        return ''.join(r.to_dict()['data'] for r in self.records
                       if r.data is not None and r.fields.get('src') == src)

    async def wait_for(self, kind, count=1):
        async def _poll():
            while len(self.of_kind(kind)) < count:
                await asyncio.sleep(0.01)
        await asyncio.wait_for(_poll(), TIMEOUT)


class MemoryConnection:
    """内存中的双向连接，read 从队列取数据，write 追加到 written"""

    def __init__(self, peer='memory:0', chunks=()):
        self.peer_address = peer
        self.inbox = asyncio.Queue()
        self.written = []
        self.write_error = None
        self.read_error = None
        self._closed = False
        for chunk in chunks:
            self.inbox.put_nowait(chunk)

    @property
    def closed(self):
        return self._closed

    def feed(self, data):
        self.inbox.put_nowait(data)

    def feed_eof(self):
        self.inbox.put_nowait(b'')

    async def read(self, size=65536):
        if self.read_error is not None:
            raise self.read_error
        if self._closed:
            return b''
        return await self.inbox.get()

    async def write(self, data):
        if self.write_error is not None:
            raise self.write_error
        if self._closed:
            raise ConnectionResetError('connection closed')
        self.written.append(bytes(data))
        return len(data)

    async def close(self):
        if not self._closed:
            self._closed = True
            self.inbox.put_nowait(b'')


async def start_server(handler, port=0):
    server = await asyncio.start_server(handler, LOOPBACK, port)
    port = server.sockets[0].getsockname()[1]
    return server, Address(LOOPBACK, port)


async def start_proxy(sink, remote, **options):
    config = ProxyConfig(Address(LOOPBACK, 0), remote, **options)
    listener = ProxyListener(config, sink)
    task = asyncio.create_task(listener.serve())
    await asyncio.wait_for(listener.started.wait(), TIMEOUT)
    return listener, task


async def stop(task):
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


async def connect(address):
    return await asyncio.open_connection(LOOPBACK, address.port)
