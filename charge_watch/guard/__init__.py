"""외부 의존성 호출 보호 (서킷 브레이커)"""

from charge_watch.guard.breaker import (
    BreakerOpenError,
    BreakerOptions,
    BreakerState,
    CircuitBreaker,
)
from charge_watch.guard.presets import PushCircuitBreaker, VehicleDataCircuitBreaker

__all__ = [
    "BreakerOpenError",
    "BreakerOptions",
    "BreakerState",
    "CircuitBreaker",
    "PushCircuitBreaker",
    "VehicleDataCircuitBreaker",
]
