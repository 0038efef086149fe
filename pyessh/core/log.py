import logging

from pyessh.core.models import Host

LOGGER_NAME = "pyessh"


class EsshFormatter(logging.Formatter):
    """输出形如 `[essh debug] message` 的日志"""

    def format(self, record):
        record.tag = record.levelname.lower()
        return super().format(record)


class HostLoggerAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        return f"[{self.extra['hostname']}] {msg}", kwargs


def setup_logging(debug: bool = False) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(EsshFormatter(fmt="[essh %(tag)s] %(message)s"))
    logger.addHandler(handler)
    return logger


def get_host_logger(host: Host, name: str = LOGGER_NAME) -> logging.LoggerAdapter:
    return HostLoggerAdapter(logging.getLogger(name), {"hostname": host.name})
