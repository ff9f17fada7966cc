"""convo_driver 顶层包。

按配置文件中的 system prompt 和 user prompt 列表，
对 Azure OpenAI chat/completions 接口执行一次脚本化的多轮对话：
配置加载、凭证解析、Provider 适配、对话循环与统一异常。
"""

from convo_driver.conversation import ConversationRunner, run_conversation

__all__ = ["ConversationRunner", "run_conversation"]
