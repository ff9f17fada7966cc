"""配置管理模块。

分为两部分：

- AppSettings: 进程级配置（配置文件路径、日志配置、API 版本等），
  以 CONVO_ 为前缀从环境变量读取，由进程入口通过 load_settings 构造一次。
- CredentialSettings: 调用远端接口所需的凭证，每次调用都重新读取，
  以便运行过程中轮换凭证。
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from convo_driver.domain.exceptions import ConfigurationError, EnvironmentVariableError


DEFAULT_API_VERSION = "2023-05-15"


class AppSettings(BaseSettings):
    """进程级配置（使用 Pydantic）。"""

    config_file: Optional[str] = Field(
        default=None,
        description="会话配置文件路径；为空时在当前目录查找 config.yaml/config.yml/config.json",
    )
    log_config_file: str = Field(default="log_config.yaml", description="logging dictConfig 的 YAML 文件")
    api_version: str = Field(default=DEFAULT_API_VERSION, description="Azure OpenAI api-version")
    http_timeout: Optional[float] = Field(
        default=None,
        ge=1.0,
        description="HTTP 超时时间（秒），默认不设超时",
    )
    log_level: str = Field(default="INFO", description="未提供日志配置文件时的默认级别")
    log_redact_content: bool = Field(default=False, description="是否截断日志内容")

    model_config = SettingsConfigDict(
        env_prefix="CONVO_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {v!r}")
        return level


class CredentialSettings(BaseSettings):
    """Azure OpenAI 凭证，对应环境变量 OPENAI_API_KEY / ENDPOINT / DEPLOYMENT。"""

    openai_api_key: Optional[str] = None
    endpoint: Optional[str] = None
    deployment: Optional[str] = None

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")


@dataclass(frozen=True)
class AzureCredentials:
    """一次调用使用的凭证快照。"""

    api_key: str
    api_base: str
    deployment_id: str


_REQUIRED_ENV = (
    ("openai_api_key", "OPENAI_API_KEY"),
    ("endpoint", "ENDPOINT"),
    ("deployment", "DEPLOYMENT"),
)


def resolve_credentials() -> AzureCredentials:
    """从环境变量读取凭证，任一缺失即抛出 EnvironmentVariableError。"""

    raw = CredentialSettings()
    missing = [env for attr, env in _REQUIRED_ENV if not (getattr(raw, attr) or "").strip()]
    if missing:
        raise EnvironmentVariableError(
            code="MISSING_ENV",
            message=f"required environment variable(s) not set: {', '.join(missing)}",
            missing=missing,
        )
    return AzureCredentials(
        api_key=raw.openai_api_key.strip(),
        api_base=raw.endpoint.strip().rstrip("/"),
        deployment_id=raw.deployment.strip(),
    )


def load_settings() -> AppSettings:
    """构造 AppSettings，环境变量取值非法时转换为 ConfigurationError。"""

    try:
        return AppSettings()
    except PydanticValidationError as e:
        raise ConfigurationError(code="SETTINGS_INVALID", message=str(e), cause=e)

