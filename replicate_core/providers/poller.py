"""预测轮询状态机。

Replicate 的预测是异步执行的：创建后需要反复查询状态直到进入终态。
这里把异步接口变成一次普通的同步调用：

    PENDING -> IN_FLIGHT (starting / processing) -> SUCCEEDED | FAILED | CANCELED

- succeeded: 返回完整响应（含 output）。
- failed:    抛出 RemoteJobError，message 为响应中的 error。
- canceled:  抛出 RemoteJobError("Prediction canceled")。
- 其他状态或缺少 status：抛出 MalformedResponseError，不再重试。

两次查询之间按指数退避等待，整体受 deadline（墙钟时间）与可选的
max_attempts 约束；每次 HTTP 往返的超时由 ReplicateApi 单独控制。
取消令牌（threading.Event）只中止本地等待，不会取消远端预测。
"""

import enum
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set

from replicate_core.domain.exceptions import (
    MalformedResponseError,
    PollCancelledError,
    PollTimeoutError,
    RemoteJobError,
)
from replicate_core.domain.models import ACTIVE_STATUSES, CANCELED_MESSAGE, PredictionStatus
from replicate_core.infrastructure.logging.logger import logger


class JobState(enum.Enum):
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def terminal(self) -> bool:
        return self in (JobState.SUCCEEDED, JobState.FAILED, JobState.CANCELED)


@dataclass(frozen=True)
class PollPolicy:
    """轮询退避策略。

    - interval: 第一次重新查询前的等待（秒）。
    - max_interval: 等待时间上限。
    - backoff: 每轮等待时间的放大倍数。
    - deadline: 整个轮询过程的墙钟时间预算（秒）。
    - max_attempts: 最多查询次数，None 表示不限制（仍受 deadline 约束）。
    """

    interval: float = 0.5
    max_interval: float = 5.0
    backoff: float = 1.5
    deadline: float = 600.0
    max_attempts: Optional[int] = None

    @classmethod
    def from_config(cls, cfg) -> "PollPolicy":
        return cls(
            interval=cfg.poll_interval,
            max_interval=cfg.poll_max_interval,
            backoff=cfg.poll_backoff,
            deadline=cfg.poll_deadline,
            max_attempts=cfg.poll_max_attempts,
        )

    def next_delay(self, delay: float) -> float:
        return min(delay * self.backoff, self.max_interval)


class PredictionPoller:
    """按 PollPolicy 轮询单个或多个预测，直到进入终态。"""

    def __init__(
        self,
        fetch: Callable[[str], Dict[str, Any]],
        policy: Optional[PollPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self._policy = policy or PollPolicy()
        self._sleep = sleep
        self._clock = clock
        self._finished: Set[str] = set()
        self.state = JobState.PENDING
        self.attempts = 0

    def wait(self, prediction_id: str, cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        """阻塞直到预测进入终态，成功时返回完整响应。"""

        if prediction_id in self._finished:
            raise RuntimeError(f"Prediction {prediction_id} already reached a terminal state")

        policy = self._policy
        started = self._clock()
        delay = policy.interval
        self.state = JobState.PENDING
        self.attempts = 0

        while True:
            if cancel is not None and cancel.is_set():
                raise self._cancelled(prediction_id)

            body = self._fetch(prediction_id)
            self.attempts += 1
            status = body.get("status") if isinstance(body, dict) else None
            logger.debug(
                "Polled prediction",
                extra={"extra": {"prediction_id": prediction_id, "status": status, "attempt": self.attempts}},
            )

            if status == PredictionStatus.SUCCEEDED:
                self._finish(prediction_id, JobState.SUCCEEDED)
                return body
            if status == PredictionStatus.FAILED:
                self._finish(prediction_id, JobState.FAILED)
                reason = body.get("error")
                raise RemoteJobError(
                    code="PREDICTION_FAILED",
                    message=str(reason) if reason else "Prediction failed",
                    prediction_id=prediction_id,
                )
            if status == PredictionStatus.CANCELED:
                self._finish(prediction_id, JobState.CANCELED)
                raise RemoteJobError(
                    code="PREDICTION_CANCELED",
                    message=CANCELED_MESSAGE,
                    prediction_id=prediction_id,
                )
            if status not in ACTIVE_STATUSES:
                raise MalformedResponseError(
                    code="MALFORMED_RESPONSE",
                    message=f"Unexpected prediction status: {status!r}",
                    prediction_id=prediction_id,
                )

            self.state = JobState.IN_FLIGHT
            if policy.max_attempts is not None and self.attempts >= policy.max_attempts:
                raise PollTimeoutError(
                    code="POLL_TIMEOUT",
                    message=f"Prediction {prediction_id} still {status} after {self.attempts} polls",
                    prediction_id=prediction_id,
                )
            elapsed = self._clock() - started
            if elapsed + delay > policy.deadline:
                raise PollTimeoutError(
                    code="POLL_TIMEOUT",
                    message=f"Prediction {prediction_id} still {status} after {elapsed:.1f}s",
                    prediction_id=prediction_id,
                )

            if cancel is not None:
                # Event.wait 在取消时立即返回 True
                if cancel.wait(delay):
                    raise self._cancelled(prediction_id)
            else:
                self._sleep(delay)
            delay = policy.next_delay(delay)

    def _finish(self, prediction_id: str, state: JobState) -> None:
        self.state = state
        self._finished.add(prediction_id)

    @staticmethod
    def _cancelled(prediction_id: str) -> PollCancelledError:
        return PollCancelledError(
            code="POLL_CANCELLED",
            message=f"Polling for prediction {prediction_id} was cancelled",
            prediction_id=prediction_id,
        )
