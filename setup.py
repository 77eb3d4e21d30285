#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
proxylog包的安装脚本
"""

from setuptools import setup, find_packages
import os

# 获取包的版本号
try:
    with open(os.path.join('proxylog', '__init__.py'), 'r', encoding='utf-8') as f:
        for line in f:
            if line.startswith('__version__'):
                version = line.strip().split('=')[1].strip().strip('"').strip("'")
                break
        else:
            version = '0.1.0'
except Exception:
    version = '0.1.0'

# 读取README文件内容
try:
    with open('README.md', 'r', encoding='utf-8') as f:
        long_description = f.read()
except Exception:
    long_description = "记录通信内容的 TCP 转发代理"

# 定义依赖项
install_requires = [
    'PyYAML>=5.1',
    'colorama>=0.4.6',
]

# 设置包的配置
setup(
    name='proxylog',
    version=version,
    description='记录通信内容的 TCP 转发代理',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='PyHack-Lab',
    author_email='',
    url='',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    install_requires=install_requires,
    extras_require={
        'test': ['pytest>=7.0'],
    },
    python_requires='>=3.10',
    entry_points={
        'console_scripts': [
            'proxylog=proxylog.main:run',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Intended Audience :: Information Technology',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Security',
        'Topic :: System :: Networking',
        'Topic :: Utilities',
    ],
    keywords='tcp-proxy, traffic-logging, security, debugging',
)
