# -*- coding: utf-8 -*-
import logging

import pytest

from proxylog.logger import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_package_logger():
    """每个测试结束后移除 setup_logging 添加的处理器"""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
