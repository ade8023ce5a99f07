"""BaseWorkflow 추상 클래스"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from charge_watch.clients.http_client import JsonHttpClient
from charge_watch.config import Settings
from charge_watch.guard.breaker import CircuitBreaker
from charge_watch.tasks.models import TaskStatus

if TYPE_CHECKING:
    from charge_watch.tasks.store import TaskRegistry


class BaseWorkflow(ABC):
    """
    워커 프로세스 안에서 실행되는 모든 Workflow의 부모 클래스.

    새 Workflow를 추가할 때는 이 클래스를 상속받고
    @register_workflow 데코레이터를 사용한다.
    상태 변경 헬퍼는 레지스트리 파일 I/O를 스레드로 넘긴다.

    외부 호출용 브레이커는 워크플로(= 워커 프로세스)마다 하나씩 설정값으로 만든다.
    """

    def __init__(
        self,
        task_details: Dict[str, Any],
        registry: "TaskRegistry",
        settings: Optional[Settings] = None,
    ):
        self.task_details = task_details
        self.registry = registry
        self.settings = settings or Settings()
        self.vehicle_breaker = self.settings.vehicle_data_breaker()
        self.push_breaker = self.settings.push_circuit_breaker()

    @property
    def vin(self) -> Optional[str]:
        return self.task_details.get("vin")

    @abstractmethod
    async def run(self) -> None:
        """워크플로를 끝까지 실행한다."""
        pass

    def http_client(self, base_url: str, breaker: Optional[CircuitBreaker] = None) -> JsonHttpClient:
        """외부 API 클라이언트를 만든다. breaker를 생략하면 차량 데이터 브레이커를 쓴다."""
        return self.settings.http_client(base_url, breaker or self.vehicle_breaker)

    async def mark_running(self) -> None:
        """작업을 RUNNING 상태로 변경한다."""
        await self._update(status=TaskStatus.RUNNING)

    async def mark_completed(self) -> None:
        """작업을 COMPLETED 상태로 변경한다."""
        await self._update(status=TaskStatus.COMPLETED)

    async def mark_failed(self) -> None:
        """작업을 FAILED 상태로 변경한다."""
        await self._update(status=TaskStatus.FAILED)

    async def update_vehicle_data(self, vehicle_data: Dict[str, Any]) -> None:
        """최근 조회한 차량 데이터를 레코드에 기록한다."""
        await self._update(latest_vehicle_data=vehicle_data)

    async def cleanup(self) -> None:
        """레지스트리에서 이 VIN의 레코드를 삭제한다."""
        if self.vin is None:
            return
        await asyncio.to_thread(self.registry.remove, self.vin)

    async def _update(self, **fields: Any) -> bool:
        if self.vin is None:
            return False
        return await asyncio.to_thread(self.registry.update, self.vin, **fields)
