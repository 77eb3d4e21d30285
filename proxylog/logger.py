# -*- coding: utf-8 -*-
"""
日志模块

基于标准库 logging：每条事件写成一行 JSON，或者 (-c) 写成带颜色的控制台格式。
会话相关的记录 (建立、关闭、数据) 使用独立的 SESSION 级别，无论是否开启 -v 都会输出。
"""

import copy
import json
import logging
import sys
from datetime import datetime, timezone

import colorama
from colorama import Fore, Style

from .models import EventKind, LogEvent, LogOptions

LOGGER_NAME = 'proxylog'

# 高于 CRITICAL，任何阈值下都会输出
SESSION = 60
logging.addLevelName(SESSION, 'SESSION')

EVENT_LEVELS = {
    EventKind.LISTENER_FAILED: logging.ERROR,
    EventKind.LISTENER_STARTED: logging.INFO,
    EventKind.ACCEPT_FAILED: logging.ERROR,
    EventKind.ACCEPTED: logging.INFO,
    EventKind.DIAL_FAILED: logging.ERROR,
    EventKind.ESTABLISHED: SESSION,
    EventKind.CLOSED: SESSION,
    EventKind.DATA: SESSION,
    EventKind.FATAL: logging.CRITICAL,
}

_LEVEL_NAMES = {
    logging.DEBUG: 'debug',
    logging.INFO: 'info',
    logging.WARNING: 'warn',
    logging.ERROR: 'error',
    logging.CRITICAL: 'fatal',
}

_CONSOLE_LEVELS = {
    logging.DEBUG: ('DBG', ''),
    logging.INFO: ('INF', Fore.GREEN),
    logging.WARNING: ('WRN', Fore.YELLOW),
    logging.ERROR: ('ERR', Fore.RED),
    logging.CRITICAL: ('FTL', Fore.RED + Style.BRIGHT),
    SESSION: ('---', Fore.CYAN),
}


def format_time(created: float, iso_time: bool = False):
    """ISO-8601 (微秒精度) 或整数 unix 微秒时间戳"""
    if iso_time:
        moment = datetime.fromtimestamp(created, timezone.utc).astimezone()
        return moment.isoformat(timespec='microseconds')
    return int(created * 1_000_000)


class JsonFormatter(logging.Formatter):
    """每条记录输出一个 JSON 对象"""

    def __init__(self, iso_time: bool = False):
        super().__init__()
        self.iso_time = iso_time

    def format(self, record: logging.LogRecord) -> str:
        entry = {}
        if record.levelno != SESSION:
            entry['level'] = _LEVEL_NAMES.get(record.levelno, record.levelname.lower())
        entry['time'] = format_time(record.created, self.iso_time)
        entry.update(getattr(record, 'fields', None) or {})
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        message = record.getMessage()
        if message:
            entry['message'] = message
        return json.dumps(entry, ensure_ascii=False, separators=(',', ':'))


class ConsoleFormatter(logging.Formatter):
    """便于人阅读的单行格式: 时间 级别 消息 key=value ..."""

    def __init__(self, iso_time: bool = False):
        super().__init__()
        self.iso_time = iso_time

    def format(self, record: logging.LogRecord) -> str:
        if self.iso_time:
            timestamp = format_time(record.created, True)
        else:
            timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        label, color = _CONSOLE_LEVELS.get(record.levelno, ('???', ''))
        if color:
            label = f"{color}{label}{Style.RESET_ALL}"
        parts = [timestamp, label]
        message = record.getMessage()
        if message:
            parts.append(message)
        for key, value in (getattr(record, 'fields', None) or {}).items():
            parts.append(f"{key}={json.dumps(value, ensure_ascii=False)}")
        line = ' '.join(parts)
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def setup_logging(options: LogOptions) -> logging.Logger:
    """配置包日志器：只保留一个处理器，输出到文件或标准输出"""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if options.output:
        mode = 'a' if options.append else 'w'
        handler = logging.FileHandler(options.output, mode=mode, encoding='utf-8')
    else:
        handler = logging.StreamHandler(sys.stdout)

    if options.color:
        colorama.just_fix_windows_console()
        handler.setFormatter(ConsoleFormatter(options.iso_time))
    else:
        handler.setFormatter(JsonFormatter(options.iso_time))

    logger.addHandler(handler)
    logger.setLevel(logging.INFO if options.verbose else logging.CRITICAL)
    logger.propagate = False
    return logger


class LogSink:
    """结构化事件的输出端

    bind() 返回带有预置字段的新 sink，事件最终通过 emit() 交给 logging。
    """

    def __init__(self, logger: logging.Logger = None, **context):
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.context = context

    def bind(self, **fields) -> 'LogSink':
        child = copy.copy(self)
        child.context = {**self.context, **fields}
        return child

    def event(self, kind: EventKind, error: BaseException = None,
              data: bytes = None, hex: bool = False, **fields) -> LogEvent:
        record = LogEvent(kind, {**self.context, **fields}, error, data, hex)
        self.emit(record)
        return record

    def emit(self, event: LogEvent):
        self.logger.log(EVENT_LEVELS[event.kind], event.message,
                        extra={'fields': event.to_dict()})
