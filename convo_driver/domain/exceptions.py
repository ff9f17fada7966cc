"""统一业务异常模型。

所有模块抛出的错误都继承自 BusinessError，并且只属于下面五类之一：

- ConfigurationError: 会话配置文件缺失、格式错误或缺少必需字段。
- EnvironmentVariableError: 必需的环境变量（API key / endpoint / deployment）缺失。
- RequestBuildError: 无法构造合法的请求（如消息内容为空）。
- RemoteAPIError: 远端接口调用失败（网络、鉴权、限流、服务端错误）。
- EmptyResponseError: 调用成功但没有任何可用的回复内容。

包内部不对任何一类错误做恢复，统一由进程入口捕获并转换为退出码。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "CONFIG_NOT_FOUND"）。
        message: 用户可读错误信息。
        http_status: 远端返回的 HTTP 状态码，仅 RemoteAPIError 可能携带，其余为 None。
        cause: 触发该错误的原始异常（可选），同时作为 __cause__ 链接。
        extra: 其他补充字段（例如 prompt_index、missing 等）。
    """

    kind = "business"
    exit_code = 1

    def __init__(
        self,
        code: str,
        message: str,
        http_status: Optional[int] = None,
        cause: Optional[BaseException] = None,
        **extra,
    ):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.cause = cause
        self.extra = extra
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def describe(self) -> str:
        """返回面向操作者的一行诊断信息。"""

        return f"{self.kind} [{self.code}]: {self.message}"


class ConfigurationError(BusinessError):
    """会话配置缺失、无法解析或缺少必需字段。"""

    kind = "configuration"
    exit_code = 2


class EnvironmentVariableError(BusinessError):
    """必需的凭证/环境变量缺失，在任何网络请求之前抛出。"""

    kind = "environment"
    exit_code = 3


class RequestBuildError(BusinessError):
    """请求无法被合法构造。"""

    kind = "request_build"
    exit_code = 4


class RemoteAPIError(BusinessError):
    """远端 chat/completions 调用失败，不做任何重试。"""

    kind = "remote_api"
    exit_code = 5


class EmptyResponseError(BusinessError):
    """调用成功，但所有 choice 都没有可用的文本内容。"""

    kind = "empty_response"
    exit_code = 6
