"""回调分发。

回调只用于观察结果：返回值被忽略，回调内部抛出的异常只记录日志，
不会影响 call() 的返回值。
"""

from typing import Any, Callable, Optional

from replicate_core.domain.models import CallResult
from replicate_core.infrastructure.logging.logger import logger

Observer = Callable[[CallResult], Any]


def dispatch(result: CallResult, observer: Optional[Observer]) -> None:
    if observer is None:
        return
    try:
        observer(result)
    except Exception:
        logger.exception(
            "Callback raised; result is returned unchanged",
            extra={"extra": {"ok": result.ok}},
        )
