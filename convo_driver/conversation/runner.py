"""脚本化多轮对话入口。"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from convo_driver.domain.exceptions import EmptyResponseError
from convo_driver.domain.models import ChatMessage, ChatRequest
from convo_driver.providers import create_provider
from convo_driver.providers.base import ProviderClient

logger = logging.getLogger(__name__)


class ConversationRunner:
    """按顺序发送每条 user prompt，并把回复追加到历史中。

    历史只由本类追加，从不改写或删除；Provider 只拿到 ChatRequest
    中的不可变快照。任何一步失败都立即中止，错误原样抛出。
    """

    def __init__(self, provider: ProviderClient):
        self._provider = provider
        self._history: List[ChatMessage] = []

    @property
    def history(self) -> Tuple[ChatMessage, ...]:
        """当前历史的快照，失败后依然可读。"""

        return tuple(self._history)

    def run(self, system_prompt: str, user_prompts: Iterable[str]) -> List[ChatMessage]:
        self._history = [ChatMessage(role="system", content=system_prompt)]

        for index, user_prompt in enumerate(user_prompts):
            self._history.append(ChatMessage(role="user", content=user_prompt))
            logger.info("user_prompt[%d]: \n%s", index, user_prompt)

            request = ChatRequest.from_history(self._history)
            replies = self._provider.complete(request)
            if not replies:
                raise EmptyResponseError(
                    code="EMPTY_RESPONSE",
                    message=f"no usable completion for prompt {index}",
                    prompt_index=index,
                )
            assistant = replies[0]
            logger.info("assistant[%d]: \n%s", index, assistant)

            self._history.append(ChatMessage(role="assistant", content=assistant))

        return list(self._history)


def run_conversation(
    system_prompt: str,
    user_prompts: Iterable[str],
    *,
    provider: Optional[ProviderClient] = None,
) -> List[ChatMessage]:
    """使用默认 Provider（或传入的 Provider）跑完整个脚本，返回最终历史。"""

    if provider is None:
        provider = create_provider()
    return ConversationRunner(provider).run(system_prompt, user_prompts)
