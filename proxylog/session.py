# -*- coding: utf-8 -*-
"""
会话处理模块
"""

import asyncio
from typing import Optional

from .logger import LogSink
from .models import EventKind, ProxyConfig, Session
from .relay import TaskTracker, background_tasks, duplex
from .streams import CLOSE_TIMEOUT, LoggingConnection


class SessionHandler:
    """负责一对 客户端/服务器 连接从建立到关闭的全过程"""

    def __init__(self, config: ProxyConfig, sink: LogSink, tracker: Optional[TaskTracker] = None):
        self.config = config
        self.sink = sink
        self.tracker = tracker

    async def handle(self, client, server, session_id: int) -> Optional[Exception]:
        """转发数据直到任意一端结束，返回转发的错误

        两端连接总会被关闭；关闭事件在剩余方向的复制结束之后输出，
        保证同一会话的记录顺序为 建立 → 数据 → 关闭。
        """
        relay_tasks = TaskTracker(parent=self.tracker or background_tasks)
        try:
            session = Session(
                id=session_id,
                client_addr=client.peer_address,
                server_addr=server.peer_address,
                prefix=self.config.prefix,
            )
            log = self.sink.bind(
                session=session.name,
                clientAddr=session.client_addr,
                serverAddr=session.server_addr,
            )
            log.event(EventKind.ESTABLISHED)

            if self.config.no_log:
                err = await duplex(client, server, relay_tasks)
            else:
                # 写入客户端的数据来自服务器，反之亦然
                client_side = LoggingConnection(
                    client, self.sink.bind(session=session.name, src='server'), self.config.hex)
                server_side = LoggingConnection(
                    server, self.sink.bind(session=session.name, src='client'), self.config.hex)
                err = await duplex(client_side, server_side, relay_tasks)
        finally:
            # 两端同时关闭，一端卡住不影响另一端
            await asyncio.gather(client.close(), server.close())
            await relay_tasks.wait_idle(CLOSE_TIMEOUT)

        log.event(EventKind.CLOSED, error=err)
        return err
