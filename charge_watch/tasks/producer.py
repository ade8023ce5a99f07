"""Task Producer (신규 작업 시작)"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from charge_watch.tasks.launcher import WorkerLauncher, WorkerLaunchError, encode_task_payload
from charge_watch.tasks.models import TaskRecord, TaskStatus
from charge_watch.tasks.store import TaskRegistry

logger = logging.getLogger(__name__)


class TaskAlreadyRunningError(RuntimeError):
    def __init__(self, vin: str, status: str) -> None:
        super().__init__(f"Task for VIN {vin} is already in progress ({status})")
        self.vin = vin
        self.status = status


class TaskProducer:
    """VIN별 작업을 레지스트리에 기록하고 워커를 실행한다."""

    def __init__(self, registry: TaskRegistry, launcher: WorkerLauncher) -> None:
        self.registry = registry
        self.launcher = launcher

    def submit(self, vin: str, task_details: Dict[str, Any]) -> TaskRecord:
        """
        새 작업을 시작한다.

        1. 진행 중인 작업이 있으면 거부
        2. PREPARING 상태로 레코드 저장
        3. 워커 실행 후 PID 저장

        워커는 task_details["vin"]으로 자기 레코드를 찾으므로
        vin 키가 없으면 채워 넣고, 다른 값이면 거부한다.

        Raises:
            ValueError: task_details["vin"]이 vin과 다른 경우
            TaskAlreadyRunningError: 같은 VIN의 작업이 진행 중인 경우
            WorkerLaunchError: 워커 실행 실패 (레코드는 FAILED로 남는다)
        """
        details_vin = task_details.get("vin")
        if details_vin is None:
            task_details = {**task_details, "vin": vin}
        elif details_vin != vin:
            raise ValueError(f"task_details vin {details_vin!r} does not match {vin!r}")

        with self.registry.lock():
            tasks = self.registry.load()

            existing = tasks.get(vin)
            if existing is not None and existing.is_in_flight:
                raise TaskAlreadyRunningError(vin, existing.status)
            if vin in tasks.unreadable:
                logger.warning(f"Replacing unreadable task record for VIN {vin}: {tasks.unreadable[vin]!r}")

            record = TaskRecord(
                vin=vin,
                status=TaskStatus.PREPARING,
                task_details=task_details,
                start_time=datetime.now(timezone.utc).isoformat(),
            )
            tasks[vin] = record
            self.registry.save(tasks)

            try:
                record.pid = self.launcher.launch(encode_task_payload(task_details))
            except WorkerLaunchError:
                record.status = TaskStatus.FAILED
                self.registry.save(tasks)
                raise

            self.registry.save(tasks)

        logger.info(f"Task created for VIN {vin}, pid={record.pid}")
        return record
