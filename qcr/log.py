"""日志配置"""

import logging
import os
import sys

LOGGER_NAME = "qcr"


def setup_logging() -> logging.Logger:
    """为 qcr 日志器安装 stderr 处理器

    级别来自 QCR_LOG_LEVEL（默认 WARNING），设置 QCR_DEBUG 时为 DEBUG。
    重复调用不会重复添加处理器。
    """
    logger = logging.getLogger(LOGGER_NAME)

    level_name = os.getenv("QCR_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    if os.getenv("QCR_DEBUG"):
        level = logging.DEBUG

    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger
