"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在客户端入口处统一转换为 CallResult，或在上层做统一提示。

分类：
- ConfigurationError / UnsupportedFeatureError：致命错误，在任何网络请求之前抛出。
- TransportError 及其子类：提交或轮询时 HTTP 层失败，不做重试。
- RemoteJobError：预测进入 failed / canceled 终态。
- MalformedResponseError：响应缺少必要字段或状态未知。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "PREDICTION_FAILED"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 prediction_id、model 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigurationError(BusinessError):
    """配置缺失、取值越界或请求了不支持的 stream 模式。"""


class UnsupportedFeatureError(BusinessError):
    """请求了 Replicate 模型不支持的能力（例如工具/函数调用）。"""


class MessageValidationError(BusinessError):
    """消息结构不合法（角色未知、内容类型错误等）。"""


class TransportError(BusinessError):
    """提交或轮询请求在网络/HTTP 层失败。"""


class NetworkError(TransportError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(TransportError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(TransportError):
    """Provider 限流错误，由上层负责重试/退避策略。"""


class RemoteJobError(BusinessError):
    """远端预测以 failed 或 canceled 结束。"""


class MalformedResponseError(BusinessError):
    """响应体缺少 id/status/output 等字段，或 status 不在已知集合内。"""


class PollTimeoutError(BusinessError):
    """轮询超过整体时间预算或最大次数。"""


class PollCancelledError(BusinessError):
    """调用方通过取消令牌中止了轮询（远端预测不会被取消）。"""
