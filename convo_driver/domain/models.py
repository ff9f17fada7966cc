"""统一的对话与结果数据模型。

本模块定义了会话驱动器内部共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant），创建后不可变。
- ChatRequest: 某一轮发送给 Provider 的完整请求，由历史快照构造。
- ChatResult: 从 Provider 响应解析出的统一结果。

Provider 适配器（如 AzureOpenAIClient）只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal, Optional, Sequence, Tuple, List, get_args

from convo_driver.domain.exceptions import RequestBuildError


# LLM 消息角色类型（与 OpenAI / Azure OpenAI 的 role 字段对应）
Role = Literal["system", "user", "assistant"]
ROLES = frozenset(get_args(Role))


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。"""

    role: Role
    content: str

    def to_payload(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatRequest:
    """一次完整的聊天请求。

    messages 是构造时刻历史的不可变快照：之后历史再追加消息，
    已经构造好的请求不会受影响。
    """

    messages: Tuple[ChatMessage, ...]

    @classmethod
    def from_history(cls, history: Sequence[ChatMessage]) -> "ChatRequest":
        """从当前历史构造请求，并校验每条消息都可以发送。"""

        snapshot = tuple(history)
        if not snapshot:
            raise RequestBuildError(code="EMPTY_HISTORY", message="cannot build a request without messages")
        for idx, msg in enumerate(snapshot):
            if msg.role not in ROLES:
                raise RequestBuildError(
                    code="INVALID_ROLE",
                    message=f"message {idx} has unsupported role {msg.role!r}",
                    index=idx,
                )
            if not isinstance(msg.content, str) or not msg.content:
                raise RequestBuildError(
                    code="EMPTY_CONTENT",
                    message=f"message {idx} ({msg.role}) has empty content",
                    index=idx,
                )
        return cls(messages=snapshot)

    def to_payload(self) -> dict:
        return {"messages": [m.to_payload() for m in self.messages]}


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答，content 可能为空。"""

    index: int
    content: Optional[str] = None
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次对话调用的最终结果。

    - choices: 按接口返回顺序排列的候选回答。
    - usage: 可选的 token 使用统计，仅用于日志。
    - raw: 原始响应 JSON，用于调试。
    - started_at / finished_at: 调用前后的 UTC 时间戳，仅用于诊断。
    """

    choices: List[ChatChoice]
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def elapsed(self) -> Optional[timedelta]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def texts(self) -> List[str]:
        """返回所有非空的 choice 文本，保持接口返回的顺序。"""

        return [c.content for c in self.choices if c.content]
