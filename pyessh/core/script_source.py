"""读取 --file 指定的脚本 (本地路径或 http(s) URL)"""

import logging
from pathlib import Path

import httpx

from pyessh.core.exceptions import ScriptSourceError

logger = logging.getLogger(__name__)


def is_url(location: str) -> bool:
    return location.startswith("http://") or location.startswith("https://")


def load_script(location: str) -> str:
    if is_url(location):
        logger.debug("get script using http from '%s'", location)
        try:
            # https 不校验证书
            response = httpx.get(location, verify=False, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as ex:
            raise ScriptSourceError(f"failed to fetch script '{location}': {ex}") from ex
        return response.text

    try:
        return Path(location).read_text()
    except OSError as ex:
        raise ScriptSourceError(f"failed to read script '{location}': {ex}") from ex
