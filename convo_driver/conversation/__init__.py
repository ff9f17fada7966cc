"""对话编排层。"""

from .runner import ConversationRunner, run_conversation

__all__ = ["ConversationRunner", "run_conversation"]
