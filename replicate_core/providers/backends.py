"""预测执行后端。

ReplicateClient 不直接依赖 HTTP，而是依赖 PredictionBackend 协议：

- HttpPredictionBackend：提交预测 -> 轮询 -> 归一化，真实访问 Replicate。
- FakePredictionBackend：返回预设的 CallResult，不发任何请求，用于测试。

后端以参数的形式传给客户端，不使用进程级全局开关，并发调用之间互不影响。
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from replicate_core.domain.exceptions import (
    BusinessError,
    ConfigurationError,
    UnsupportedFeatureError,
)
from replicate_core.domain.models import CallResult
from replicate_core.infrastructure.logging.logger import log_event, logger
from replicate_core.providers.normalizer import process_response
from replicate_core.providers.poller import PollPolicy, PredictionPoller
from replicate_core.providers.replicate_api import ReplicateApi


class PredictionBackend(Protocol):
    """执行一次预测并返回归一化结果。"""

    def complete(self, payload: Dict[str, Any], cancel: Optional[threading.Event] = None) -> CallResult:
        ...


class HttpPredictionBackend:
    """真实后端：每次调用创建独立的 PredictionPoller，调用之间不共享状态。"""

    def __init__(
        self,
        api: ReplicateApi,
        policy: Optional[PollPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._api = api
        self._policy = policy or PollPolicy()
        self._sleep = sleep
        self._clock = clock

    def complete(self, payload: Dict[str, Any], cancel: Optional[threading.Event] = None) -> CallResult:
        log_ctx: Dict[str, Any] = {"version": payload.get("version")}
        poller = PredictionPoller(self._api.get_prediction, self._policy, sleep=self._sleep, clock=self._clock)
        try:
            prediction_id = self._api.create_prediction(payload)
            log_ctx["prediction_id"] = prediction_id
            log_event(logging.INFO, "Created prediction", log_ctx)
            response = poller.wait(prediction_id, cancel=cancel)
        except (ConfigurationError, UnsupportedFeatureError):
            raise
        except BusinessError as e:
            log_event(
                logging.WARNING,
                "Prediction did not succeed",
                log_ctx,
                code=e.code,
                error=e.message,
                state=poller.state.value,
            )
            return CallResult.failure(e)

        result = process_response(response)
        log_event(
            logging.INFO,
            "Prediction finished",
            log_ctx,
            ok=result.ok,
            attempts=poller.attempts,
            predict_time=(response.get("metrics") or {}).get("predict_time"),
        )
        return result


class FakePredictionBackend:
    """返回预设结果的测试替身。

    response 必须是 CallResult（成功或失败皆可），否则视为配置错误。
    calls 记录每次收到的请求 payload，便于断言。
    """

    def __init__(self, response: CallResult):
        if not isinstance(response, CallResult):
            raise ConfigurationError(
                code="INVALID_CONFIG",
                message="An unexpected fake API response was set. Should be a CallResult",
            )
        self._response = response
        self.calls: List[Dict[str, Any]] = []

    def complete(self, payload: Dict[str, Any], cancel: Optional[threading.Event] = None) -> CallResult:
        logger.warning("Found override API response. Will not make live API call.")
        self.calls.append(payload)
        return self._response
