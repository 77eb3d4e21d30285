# -*- coding: utf-8 -*-
"""
连接分发模块

从队列中取出已接受的客户端连接，为每个连接拨号远程服务器并交给会话处理器。
"""

import asyncio
import logging
from typing import Optional

from .logger import LogSink
from .models import Address, EventKind, ProxyConfig
from .relay import TaskTracker
from .session import SessionHandler
from .streams import Connection

logger = logging.getLogger(__name__)


class ConnectionQueue:
    """无缓冲的交接队列：put 在消费者取走连接之前不会返回"""

    def __init__(self):
        self._queue = asyncio.Queue(maxsize=1)

    async def put(self, conn):
        await self._queue.put(conn)
        await self._queue.join()

    async def get(self):
        conn = await self._queue.get()
        self._queue.task_done()
        return conn


class ConnectionDispatcher:
    """连接分发器

    同步模式下一个会话结束后才处理下一个连接；
    并发模式下每个会话运行在独立的任务中。
    """

    def __init__(self, config: ProxyConfig, sink: LogSink,
                 handler: Optional[SessionHandler] = None,
                 tracker: Optional[TaskTracker] = None):
        self.config = config
        self.sink = sink
        self.tracker = tracker or TaskTracker()
        self.handler = handler or SessionHandler(config, sink, self.tracker)
        self.sessions = TaskTracker()
        self.session_count = 0

    async def dispatch(self, queue: ConnectionQueue, remote: Address):
        """持续消费队列，直到任务被取消"""
        while True:
            client = await queue.get()
            await self.dispatch_one(client, remote)

    async def dial(self, remote: Address) -> Connection:
        return await Connection.open(remote)

    async def dispatch_one(self, client, remote: Address):
        try:
            server = await self.dial(remote)
        except OSError as e:
            self.sink.event(EventKind.DIAL_FAILED, error=e, clientAddr=client.peer_address)
            await client.close()
            return

        self.session_count += 1
        if self.config.sync:
            try:
                await self.handler.handle(client, server, self.session_count)
            except Exception:
                logger.exception("session %s%d failed", self.config.prefix, self.session_count)
        else:
            task = asyncio.create_task(self.handler.handle(client, server, self.session_count))
            task.add_done_callback(self._session_done)
            self.sessions.track(task)

    def _session_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("session failed", exc_info=exc)
