"""외부 API JSON 클라이언트 (서킷 브레이커 적용)"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import httpx

from charge_watch.guard.breaker import CircuitBreaker

DEFAULT_TIMEOUT = 30.0


class HttpRequestError(RuntimeError):
    """2xx가 아닌 응답 또는 JSON이 아닌 응답 본문"""

    def __init__(self, message: str, status_code: Optional[int] = None, body_preview: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_preview = body_preview


class JsonHttpClient:
    """
    JSON POST 요청을 브레이커를 거쳐 보내는 클라이언트.

    HttpRequestError와 전송 오류는 모두 브레이커의 실패로 집계된 뒤 그대로 올라간다.
    브레이커가 열려 있으면 요청을 보내지 않고 BreakerOpenError를 던진다.
    """

    def __init__(
        self,
        base_url: str,
        breaker: CircuitBreaker,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.breaker = breaker
        self.timeout = timeout
        # 테스트에서 MockTransport를 주입한다
        self.transport = transport

    async def post(
        self,
        path: str,
        data: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        label: Optional[str] = None,
    ) -> Any:
        """브레이커를 거쳐 JSON POST 요청을 보내고 파싱한 응답 본문을 반환한다."""
        async def _call() -> Any:
            return await self._post_json(path, data, headers or {})

        return await self.breaker.execute(_call, label or f"POST {path}")

    async def _post_json(self, path: str, data: Dict[str, Any], headers: Dict[str, str]) -> Any:
        request_headers = {"Content-Type": "application/json", **headers}
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            response = await client.post(
                path,
                content=json.dumps(data, ensure_ascii=False).encode("utf-8"),
                headers=request_headers,
            )

        body = response.text
        if not response.is_success:
            raise HttpRequestError(
                f"HTTP error: {response.status_code}",
                status_code=response.status_code,
                body_preview=body[:200],
            )

        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise HttpRequestError(
                f"Response JSON decode error: {e}",
                status_code=response.status_code,
                body_preview=body[:200],
            ) from e
