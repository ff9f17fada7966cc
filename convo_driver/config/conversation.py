"""会话脚本配置加载。

配置文件需要提供：

- system_prompt: 单个字符串。
- user_prompt: 字符串列表，按顺序逐条发送。

文件用 yaml.safe_load 解析（JSON 也是合法的 YAML），再用 Pydantic 校验。
"""

import logging
import os
from pathlib import Path
from typing import List, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError

from convo_driver.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "CONVO_CONFIG_FILE"
DEFAULT_CONFIG_NAMES = ("config.yaml", "config.yml", "config.json")


class ConversationConfig(BaseModel):
    """一次运行的会话脚本。"""

    model_config = ConfigDict(extra="ignore", strict=True)

    system_prompt: str
    user_prompt: List[str]


def find_config_file(explicit: Union[str, Path, None] = None) -> Path:
    """按优先级定位配置文件：显式参数 > CONVO_CONFIG_FILE > 当前目录默认文件名。"""

    explicit = explicit or os.getenv(CONFIG_FILE_ENV)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigurationError(code="CONFIG_NOT_FOUND", message=f"config file {path} does not exist")
        return path
    for name in DEFAULT_CONFIG_NAMES:
        path = Path.cwd() / name
        if path.is_file():
            return path
    raise ConfigurationError(
        code="CONFIG_NOT_FOUND",
        message=f"no config file found in {Path.cwd()} (tried {', '.join(DEFAULT_CONFIG_NAMES)})",
    )


def load_conversation_config(path: Union[str, Path, None] = None) -> ConversationConfig:
    """读取并校验会话配置。"""

    config_path = find_config_file(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(code="CONFIG_READ_ERROR", message=f"cannot read {config_path}: {e}", cause=e)
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(code="CONFIG_MALFORMED", message=f"cannot parse {config_path}: {e}", cause=e)
    if not isinstance(data, dict):
        raise ConfigurationError(
            code="CONFIG_MALFORMED",
            message=f"config file {config_path} is not a mapping",
        )
    try:
        cfg = ConversationConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(code="CONFIG_INVALID", message=_summarize(e), cause=e)
    logger.debug("config loaded from %s: %r", config_path, cfg)
    return cfg


def _summarize(err: PydanticValidationError) -> str:
    parts: List[str] = []
    for item in err.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {item.get('msg')}")
    return "; ".join(parts)

