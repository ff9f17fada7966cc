"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 提供具体实现 (azure_client)。
"""

from typing import Optional

from convo_driver.config.settings import AppSettings, load_settings
from convo_driver.providers.base import ProviderClient
from convo_driver.providers.azure_client import AzureOpenAIClient


def create_provider(cfg: Optional[AppSettings] = None) -> ProviderClient:
    """根据进程配置创建 Provider 实例。"""

    cfg = cfg or load_settings()
    return AzureOpenAIClient(api_version=cfg.api_version, timeout=cfg.http_timeout)


__all__ = ["AzureOpenAIClient", "ProviderClient", "create_provider"]
