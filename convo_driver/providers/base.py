"""Provider 抽象接口。

上层 ConversationRunner 不直接依赖具体厂商的 HTTP 调用，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 AzureOpenAIClient）。
- 负责：将 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult。
"""

from typing import List, Protocol

from convo_driver.domain.models import ChatRequest, ChatResult


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - chat(req): 执行一次非流式对话调用，返回统一的 ChatResult。
    - complete(req): 返回非空候选文本列表，保持接口返回顺序。
    """

    name: str

    def chat(self, req: ChatRequest) -> ChatResult:
        ...

    def complete(self, req: ChatRequest) -> List[str]:
        ...
