# -*- coding: utf-8 -*-
"""
主入口模块
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .config import Config, ConfigError, build_log_options, build_proxy_config
from .listener import serve
from .logger import LogSink, setup_logging
from .models import EventKind


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='proxylog', description='记录通信内容的 TCP 转发代理')
    parser.add_argument('-l', dest='listen', metavar='ADDR', help='监听/本地地址 (必填)')
    parser.add_argument('-r', dest='remote', metavar='ADDR', help='远程/服务器地址 (必填)')
    parser.add_argument('-o', dest='output', metavar='FILE', help='日志写入文件而不是标准输出')
    parser.add_argument('-p', dest='prefix', metavar='PREFIX', help='会话编号前缀')
    parser.add_argument('-f', dest='config', metavar='FILE', help='YAML 配置文件')
    # 布尔开关默认 None，便于区分 "未指定" 与配置文件中的值
    parser.add_argument('-a', dest='append', action='store_true', default=None, help='追加写入日志文件')
    parser.add_argument('-s', dest='sync', action='store_true', default=None, help='强制逐个同步处理连接')
    parser.add_argument('-x', dest='hex', action='store_true', default=None, help='以十六进制记录数据 (默认按 UTF-8 文本记录，无效字节写成 \\xNN，反斜杠写成 \\\\)')
    parser.add_argument('-c', dest='color', action='store_true', default=None, help='使用彩色控制台日志格式')
    parser.add_argument('-n', dest='no_log', action='store_true', default=None, help='不记录数据')
    parser.add_argument('-t', dest='iso_time', action='store_true', default=None, help='使用 ISO 格式时间')
    parser.add_argument('-v', dest='verbose', action='store_true', default=None, help='记录监听器状态')
    return parser


def fatal(message) -> int:
    """启动阶段的致命错误：输出一行诊断信息"""
    print(f"错误: {message}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args, extra = parser.parse_known_args(argv)
    if extra:
        return fatal(f"unknown argument: {extra[0]}")

    options = vars(args)
    try:
        settings = Config(options.pop('config')).merged(options)
        log_options = build_log_options(settings)
        proxy_config = build_proxy_config(settings)
        logger = setup_logging(log_options)
    except (ConfigError, OSError) as e:
        return fatal(e)

    sink = LogSink(logger)
    try:
        asyncio.run(serve(proxy_config, sink))
    except OSError as e:
        sink.event(EventKind.FATAL, error=e)
        return 1
    return 0


def run():
    """运行函数，处理用户中断"""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n程序被用户中断", file=sys.stderr)
        sys.exit(0)


if __name__ == '__main__':
    run()
