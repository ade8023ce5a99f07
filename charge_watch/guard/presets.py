"""의존성별 브레이커 프리셋"""

from __future__ import annotations

import time
from typing import Awaitable, Callable, Optional, TypeVar

from charge_watch.guard.breaker import BreakerOptions, CircuitBreaker

T = TypeVar("T")

# 차량 데이터 조회: 5회 연속 실패 시 열림, 60초 후 재시도
VEHICLE_DATA_OPTIONS = BreakerOptions(failure_threshold=5, reset_timeout=60.0, monitoring_period=10.0)

# 푸시 발송: 3회 연속 실패 시 열림, 30초 후 재시도
PUSH_OPTIONS = BreakerOptions(failure_threshold=3, reset_timeout=30.0, monitoring_period=5.0)


class VehicleDataCircuitBreaker(CircuitBreaker):
    """차량 데이터 조회용 브레이커"""

    def __init__(
        self,
        options: Optional[BreakerOptions] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(options or VEHICLE_DATA_OPTIONS, clock)

    async def execute_vehicle_data_fetch(self, operation: Callable[[], Awaitable[T]], vin: str) -> T:
        return await self.execute(operation, f"vehicle-data[{vin}]")


class PushCircuitBreaker(CircuitBreaker):
    """푸시 발송용 브레이커"""

    def __init__(
        self,
        options: Optional[BreakerOptions] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(options or PUSH_OPTIONS, clock)

    async def execute_push(self, operation: Callable[[], Awaitable[T]], device_token: str) -> T:
        # 토큰 전체를 로그에 남기지 않는다
        return await self.execute(operation, f"push[{(device_token or '')[:8]}...]")
