"""서킷 브레이커 (외부 의존성 호출 보호)"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 반개방 상태에서 닫힘으로 전환하기 위한 연속 성공 횟수
HALF_OPEN_SUCCESS_THRESHOLD = 3


class BreakerState(str, Enum):
    """브레이커 상태"""
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass
class BreakerOptions:
    """
    브레이커 설정.

    failure_threshold: 열림 전환까지 허용하는 연속 실패 횟수
    reset_timeout: 열림 상태 유지 시간(초), 이후 첫 호출이 시험 호출이 된다
    monitoring_period: 참고용 값 (현재 전환 로직에서 사용하지 않음)
    """
    failure_threshold: int = 5
    reset_timeout: float = 60.0
    monitoring_period: float = 10.0

    def __post_init__(self) -> None:
        if self.failure_threshold <= 0:
            raise ValueError(f"failure_threshold must be > 0, got {self.failure_threshold}")
        if self.reset_timeout <= 0:
            raise ValueError(f"reset_timeout must be > 0, got {self.reset_timeout}")
        if self.monitoring_period <= 0:
            raise ValueError(f"monitoring_period must be > 0, got {self.monitoring_period}")


class BreakerOpenError(RuntimeError):
    def __init__(self, label: str, retry_after: float) -> None:
        super().__init__(
            f"Circuit breaker open for {label}, retry in {round(retry_after)}s"
        )
        self.label = label
        self.retry_after = retry_after


class CircuitBreaker:
    """
    의존성 하나를 보호하는 3상태 서킷 브레이커.

    상태 전이:
        CLOSED --(연속 실패 >= threshold)--> OPEN
        OPEN --(reset_timeout 경과 후 첫 호출)--> HALF_OPEN
        HALF_OPEN --(연속 3회 성공)--> CLOSED
        HALF_OPEN --(실패 1회)--> OPEN

    카운터 변경은 내부 락으로 직렬화한다. 락은 operation을 await 하는 동안
    잡고 있지 않으므로 같은 인스턴스를 여러 코루틴/스레드에서 공유해도 된다.
    """

    def __init__(
        self,
        options: Optional[BreakerOptions] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.options = options or BreakerOptions()
        self._clock = clock
        self._lock = threading.Lock()

        self.state = BreakerState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: Optional[float] = None
        self.next_attempt: float = clock()

    async def execute(self, operation: Callable[[], Awaitable[T]], label: str = "unknown") -> T:
        """
        operation을 브레이커 보호 하에 실행한다.

        Raises:
            BreakerOpenError: 열림 상태이고 대기 시간이 남아 있는 경우
                (operation은 호출되지 않는다)
            Exception: operation이 던진 예외를 그대로 다시 던진다
        """
        self._before_call(label)

        try:
            result = await operation()
        except Exception:
            self._on_failure(label)
            raise

        self._on_success(label)
        return result

    def _before_call(self, label: str) -> None:
        with self._lock:
            if self.state != BreakerState.OPEN:
                return

            now = self._clock()
            if now < self.next_attempt:
                raise BreakerOpenError(label, self.next_attempt - now)

            self.state = BreakerState.HALF_OPEN
            self.success_count = 0
        logger.info(f"[CircuitBreaker] {label} - half-open, probing dependency")

    def _on_success(self, label: str) -> None:
        with self._lock:
            self.failure_count = 0
            if self.state != BreakerState.HALF_OPEN:
                return

            self.success_count += 1
            count = self.success_count
            if count >= HALF_OPEN_SUCCESS_THRESHOLD:
                self.state = BreakerState.CLOSED
                self.success_count = 0

        if count >= HALF_OPEN_SUCCESS_THRESHOLD:
            logger.info(f"[CircuitBreaker] {label} - closed, dependency recovered")
        else:
            logger.info(f"[CircuitBreaker] {label} - half-open success {count}/{HALF_OPEN_SUCCESS_THRESHOLD}")

    def _on_failure(self, label: str) -> None:
        with self._lock:
            now = self._clock()
            self.failure_count += 1
            self.last_failure_time = now

            if self.state == BreakerState.HALF_OPEN:
                reason = "half-open probe failed"
            elif self.state == BreakerState.CLOSED and self.failure_count >= self.options.failure_threshold:
                reason = f"{self.failure_count} consecutive failures"
            else:
                # 이미 OPEN이면 늦게 끝난 호출이므로 전환하지 않는다
                return

            self.state = BreakerState.OPEN
            self.next_attempt = now + self.options.reset_timeout

        logger.warning(
            f"[CircuitBreaker] {label} - opened ({reason}), "
            f"retry in {round(self.options.reset_timeout)}s"
        )

    @property
    def is_available(self) -> bool:
        """다음 호출이 허용되는지 여부 (CLOSED 이거나 대기 시간이 지난 OPEN)."""
        if self.state == BreakerState.CLOSED:
            return True
        return self.state == BreakerState.OPEN and self._clock() >= self.next_attempt

    def get_status(self) -> Dict[str, Any]:
        """브레이커 상태 스냅샷을 반환한다."""
        with self._lock:
            return {
                "state": self.state.value,
                "failure_count": self.failure_count,
                "success_count": self.success_count,
                "last_failure_time": self.last_failure_time,
                "next_attempt": self.next_attempt,
                "is_available": self.is_available,
            }

    def reset(self) -> None:
        """브레이커를 수동으로 CLOSED 상태로 되돌린다."""
        with self._lock:
            self.state = BreakerState.CLOSED
            self.failure_count = 0
            self.success_count = 0
            self.last_failure_time = None
            self.next_attempt = self._clock()
        logger.info("[CircuitBreaker] manually reset")
