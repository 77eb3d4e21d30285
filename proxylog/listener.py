# -*- coding: utf-8 -*-
"""
监听模块

绑定本地地址并循环接受连接，接受到的连接经无缓冲队列交给分发器。
接受连接失败只记录日志，不会终止循环。
"""

import asyncio
import socket
from typing import Optional

from .dispatcher import ConnectionDispatcher, ConnectionQueue
from .logger import LogSink
from .models import Address, EventKind, ProxyConfig
from .streams import Connection, format_peer


class ProxyListener:
    """TCP 监听器"""

    def __init__(self, config: ProxyConfig, sink: LogSink,
                 dispatcher: Optional[ConnectionDispatcher] = None):
        self.config = config
        self.sink = sink
        self.dispatcher = dispatcher or ConnectionDispatcher(config, sink)
        self.address: Optional[Address] = None
        self.started = asyncio.Event()

    def bind(self) -> socket.socket:
        """创建监听套接字，失败时抛出 OSError"""
        host = self.config.listen.host
        family = socket.AF_INET6 if ':' in host else socket.AF_INET
        sock = socket.create_server((host, self.config.listen.port), family=family)
        sock.setblocking(False)
        return sock

    async def serve(self):
        """运行接受循环，直到任务被取消"""
        try:
            sock = self.bind()
        except OSError as e:
            self.sink.event(EventKind.LISTENER_FAILED, error=e)
            raise

        host, port = sock.getsockname()[:2]
        self.address = Address(host, port)
        fields = {}
        if self.config.prefix:
            fields['idPrefix'] = self.config.prefix
        log = self.sink.bind(listenAddr=str(self.address), remoteAddr=str(self.config.remote), **fields)
        log.event(EventKind.LISTENER_STARTED)

        queue = ConnectionQueue()
        dispatch_task = asyncio.create_task(self.dispatcher.dispatch(queue, self.config.remote))
        loop = asyncio.get_running_loop()
        self.started.set()
        try:
            while True:
                try:
                    client_sock, peer = await loop.sock_accept(sock)
                except OSError as e:
                    log.event(EventKind.ACCEPT_FAILED, error=e)
                    continue
                try:
                    client = await Connection.from_socket(client_sock)
                except OSError as e:
                    client_sock.close()
                    log.event(EventKind.ACCEPT_FAILED, error=e, clientAddr=format_peer(peer))
                    continue
                log.event(EventKind.ACCEPTED, clientAddr=client.peer_address)
                await queue.put(client)
        finally:
            dispatch_task.cancel()
            sock.close()


async def serve(config: ProxyConfig, sink: LogSink):
    """启动代理并一直运行"""
    listener = ProxyListener(config, sink)
    await listener.serve()
