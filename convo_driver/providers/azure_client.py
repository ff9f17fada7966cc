"""Azure OpenAI Provider 适配器。

本模块负责：

1. 接收统一的 ChatRequest（历史快照）。
2. 每次调用时重新解析凭证，拼出 Azure 的 chat/completions 请求：
   - URL: {endpoint}/openai/deployments/{deployment}/chat/completions?api-version=...
   - 认证: api-key: <key>
3. 调用 HTTP 接口，并把网络/API 异常统一包装为 RemoteAPIError（不重试）。
4. 将响应 JSON 解析为统一的 ChatResult。
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx

from convo_driver.config.settings import DEFAULT_API_VERSION, AzureCredentials, resolve_credentials
from convo_driver.domain.exceptions import RemoteAPIError
from convo_driver.domain.models import ChatChoice, ChatRequest, ChatResult, ChatUsage

logger = logging.getLogger(__name__)

CredentialsResolver = Callable[[], AzureCredentials]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_int(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


class AzureOpenAIClient:
    """Azure OpenAI 客户端实现。

    - name: Provider 名称（供日志/调试使用）。
    - chat: 返回完整的 ChatResult。
    - complete: 只返回非空的候选文本列表。
    """

    name = "azure"

    def __init__(
        self,
        credentials_resolver: CredentialsResolver = resolve_credentials,
        api_version: str = DEFAULT_API_VERSION,
        timeout: Optional[float] = None,
    ):
        self._resolve = credentials_resolver
        self._api_version = api_version
        # None 表示不设超时
        self._timeout = timeout

    def chat(self, req: ChatRequest) -> ChatResult:
        """执行一次非流式对话调用。

        步骤：
        1. 解析凭证，缺失时在发起任何网络请求前抛出 EnvironmentVariableError。
        2. 构造 HTTP 请求 payload。
        3. 发送请求，记录前后时间戳，捕获网络错误/鉴权/限流/服务端错误。
        4. 使用统一的解析函数构造 ChatResult。
        """

        creds = self._resolve()
        payload = req.to_payload()
        url = f"{creds.api_base}/openai/deployments/{creds.deployment_id}/chat/completions"

        started_at = _utcnow()
        logger.debug("request started at %s (%d messages)", started_at.isoformat(), len(req.messages))
        try:
            with httpx.Client(timeout=self._timeout, trust_env=False) as client:
                resp = client.post(
                    url,
                    params={"api-version": self._api_version},
                    json=payload,
                    headers={
                        "api-key": creds.api_key,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接被拒绝等
            raise RemoteAPIError(code="NETWORK_ERROR", message=str(e) or type(e).__name__, cause=e)
        finished_at = _utcnow()
        logger.debug("request finished at %s", finished_at.isoformat())
        logger.debug("elapsed: %.3fs", (finished_at - started_at).total_seconds())

        if resp.status_code in (401, 403):
            raise RemoteAPIError(code="AUTH_ERROR", message=resp.text, http_status=resp.status_code)
        if resp.status_code == 429:
            raise RemoteAPIError(code="RATE_LIMIT", message="Azure OpenAI rate limit", http_status=429)
        if resp.status_code >= 400:
            # 其他 HTTP 错误（含模型错误、请求格式错误）统一为 API_ERROR
            raise RemoteAPIError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteAPIError(
                code="BAD_RESPONSE",
                message="response body is not valid JSON",
                http_status=resp.status_code,
                cause=e,
            )
        if not isinstance(data, dict):
            raise RemoteAPIError(
                code="BAD_RESPONSE",
                message="response body is not a JSON object",
                http_status=resp.status_code,
            )
        result = self._parse_response(data, resp.status_code)
        result.started_at = started_at
        result.finished_at = finished_at
        if result.usage:
            logger.debug(
                "usage: prompt=%d completion=%d total=%d",
                result.usage.prompt_tokens,
                result.usage.completion_tokens,
                result.usage.total_tokens,
            )
        return result

    def complete(self, req: ChatRequest) -> List[str]:
        """返回所有非空候选文本（可能为空列表，由调用方处理）。"""

        return self.chat(req).texts()

    def _parse_response(self, data: Dict[str, Any], status_code: Optional[int] = None) -> ChatResult:
        """将 Azure 的原始响应 JSON 解析为统一的 ChatResult。"""

        raw_choices = data.get("choices") or []
        if not isinstance(raw_choices, list):
            raise RemoteAPIError(
                code="BAD_RESPONSE",
                message="response field 'choices' is not a list",
                http_status=status_code,
            )
        choices: List[ChatChoice] = []
        for i, ch in enumerate(raw_choices):
            if not isinstance(ch, dict):
                continue
            msg = ch.get("message") or {}
            content = msg.get("content") if isinstance(msg, dict) else None
            choices.append(
                ChatChoice(
                    index=ch.get("index", i),
                    content=content if isinstance(content, str) else None,
                    finish_reason=ch.get("finish_reason"),
                )
            )
        # usage 只用于日志，形状不对时直接忽略
        usage_raw = data.get("usage")
        usage = None
        if isinstance(usage_raw, dict) and usage_raw:
            usage = ChatUsage(
                prompt_tokens=_as_int(usage_raw.get("prompt_tokens")),
                completion_tokens=_as_int(usage_raw.get("completion_tokens")),
                total_tokens=_as_int(usage_raw.get("total_tokens")),
            )
        return ChatResult(choices=choices, usage=usage, raw=data)
