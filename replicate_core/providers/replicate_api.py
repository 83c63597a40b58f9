"""Replicate HTTP API 封装。

只负责三个端点的请求与最基本的响应检查：
- POST {base}/predictions                 创建预测，返回 id
- GET  {base}/predictions/{id}            查询预测状态
- GET  {base}/models/{model_id}/versions  查询模型版本（最新版本在首位）

认证: Authorization: Bearer <api_key>

提交失败不会重试：远端预测一旦创建就会异步执行，即使本地没能拿到结果。
"""

from typing import Any, Dict, Optional

import httpx

from replicate_core.config.settings import settings
from replicate_core.domain.exceptions import (
    ApiError,
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    RateLimitError,
)


class ReplicateApi:
    """Replicate REST 接口的薄封装，每次请求使用独立的 httpx.Client。"""

    def __init__(self, base_url: str, timeout: float, cfg=settings):
        self._settings = cfg
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def auth_headers(self) -> Dict[str, str]:
        api_key = getattr(self._settings, "replicate_api_key", None)
        if not api_key:
            raise ConfigurationError(code="MISSING_API_KEY", message="REPLICATE_API_KEY not set")
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    # ---- 端点 ----

    def create_prediction(self, payload: Dict[str, Any]) -> str:
        data = self._request("POST", "/predictions", json=payload)
        prediction_id = data.get("id")
        if not isinstance(prediction_id, str) or not prediction_id:
            raise MalformedResponseError(
                code="MALFORMED_RESPONSE",
                message="Replicate create prediction response has no id",
            )
        return prediction_id

    def get_prediction(self, prediction_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/predictions/{prediction_id}")

    def latest_version(self, model_id: str) -> str:
        data = self._request("GET", f"/models/{model_id}/versions")
        results = data.get("results")
        if not isinstance(results, list) or not results or not isinstance(results[0], dict) or not results[0].get("id"):
            raise MalformedResponseError(
                code="MALFORMED_RESPONSE",
                message=f"No versions found for model {model_id!r}",
            )
        return results[0]["id"]

    # ---- 辅助方法 ----

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = self.auth_headers()
        try:
            with httpx.Client(timeout=self._timeout, trust_env=False) as client:
                if method == "POST":
                    resp = client.post(f"{self._base_url}{path}", json=json, headers=headers)
                else:
                    resp = client.get(f"{self._base_url}{path}", headers=headers)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Replicate rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError(
                code="MALFORMED_RESPONSE",
                message=f"Replicate returned a non-JSON body: {e}",
            ) from e
        if not isinstance(data, dict):
            raise MalformedResponseError(
                code="MALFORMED_RESPONSE",
                message="Replicate returned a non-object JSON body",
            )
        return data
