"""把预测的终态响应转换为统一的 CallResult。

纯函数，无副作用：同一个响应多次处理得到相同结果。
"""

from typing import Any, Dict

from replicate_core.domain.exceptions import MalformedResponseError, MessageValidationError, RemoteJobError
from replicate_core.domain.models import CANCELED_MESSAGE, CallResult, ChatMessage, PredictionStatus


def join_output(output: Any) -> str:
    """拼接模型输出片段，片段之间不插入任何分隔符。"""

    if isinstance(output, str):
        return output
    return "".join(str(part) for part in output if part is not None)


def process_response(data: Dict[str, Any]) -> CallResult:
    status = data.get("status")

    if status == PredictionStatus.SUCCEEDED:
        output = data.get("output")
        if output is None or not isinstance(output, (list, str)):
            return CallResult.failure(
                MalformedResponseError(
                    code="MALFORMED_RESPONSE",
                    message="Succeeded prediction has no usable output",
                )
            )
        try:
            message = ChatMessage.assistant(join_output(output), status="complete")
        except MessageValidationError as e:
            return CallResult.failure(e)
        return CallResult.success(message)

    if status == PredictionStatus.CANCELED:
        return CallResult.failure(RemoteJobError(code="PREDICTION_CANCELED", message=CANCELED_MESSAGE))

    if status == PredictionStatus.FAILED or data.get("error"):
        reason = data.get("error")
        return CallResult.failure(
            RemoteJobError(code="PREDICTION_FAILED", message=str(reason) if reason else "Prediction failed")
        )

    return CallResult.failure(
        MalformedResponseError(
            code="MALFORMED_RESPONSE",
            message=f"Prediction is not in a terminal state: {status!r}",
        )
    )
