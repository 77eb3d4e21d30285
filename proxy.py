#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
TCP 转发代理 - 入口脚本

此脚本提供了一个简单的方式来运行proxylog包中的代理功能。
"""

import sys
import os

# 添加当前目录到Python路径，确保可以导入proxylog包
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

if __name__ == '__main__':
    try:
        # 从proxylog包导入主运行函数
        from proxylog.main import run
    except ImportError as e:
        print(f"错误: 无法导入proxylog包 - {str(e)}")
        print("请确保proxylog包已正确安装或位于当前目录下")
        sys.exit(1)
    run()
