# -*- coding: utf-8 -*-
"""
双向转发模块

duplex() 同时启动两个方向的复制任务，任意一个结束就返回它的结果；
另一个任务不会被取消，由调用方关闭两端连接后自然结束。
"""

import asyncio
from typing import Optional, Set

from .streams import BUFFER_SIZE


class TaskTracker:
    """跟踪仍在运行的后台任务，可挂在上级 tracker 之下"""

    def __init__(self, parent: Optional['TaskTracker'] = None):
        self._tasks: Set[asyncio.Task] = set()
        self.parent = parent

    def track(self, task: asyncio.Task) -> asyncio.Task:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        if self.parent is not None:
            self.parent.track(task)
        return task

    @property
    def active(self) -> int:
        return len(self._tasks)

    async def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """等待所有任务结束，超时返回 False"""
        if not self._tasks:
            return True
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        return not pending


# 调用方没有提供 tracker 时，分离出去的复制任务记录在这里
background_tasks = TaskTracker()


async def copy(dst, src) -> Optional[Exception]:
    """从 src 复制到 dst，直到 EOF (返回 None) 或出错 (返回异常)"""
    try:
        while True:
            data = await src.read(BUFFER_SIZE)
            if not data:
                return None
            await dst.write(data)
    except (OSError, asyncio.IncompleteReadError) as e:
        return e


async def duplex(left, right, tracker: TaskTracker = None) -> Optional[Exception]:
    """在 left 与 right 之间双向复制，返回最先结束的方向的错误"""
    if tracker is None:
        tracker = background_tasks
    to_left = tracker.track(asyncio.create_task(copy(left, right)))
    to_right = tracker.track(asyncio.create_task(copy(right, left)))
    done, _ = await asyncio.wait({to_left, to_right}, return_when=asyncio.FIRST_COMPLETED)
    return next(iter(done)).result()
