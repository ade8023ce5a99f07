"""중단된 작업 복구 (서버 재시작 시 1회 실행)"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from charge_watch.config import Settings
from charge_watch.logging_config import setup_logging
from charge_watch.tasks.launcher import WorkerLauncher, WorkerLaunchError, encode_task_payload
from charge_watch.tasks.store import RegistryLockedError, RegistryReadError, TaskRegistry

logger = logging.getLogger(__name__)


class ResumeInProgressError(RuntimeError):
    """다른 복구 작업이 이미 레지스트리 락을 잡고 있는 경우"""


@dataclass
class ResumeSummary:
    """복구 결과 요약"""
    resumed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def updated(self) -> bool:
        return bool(self.resumed)


class ResumeSupervisor:
    """
    레지스트리에서 진행 중(PREPARING/RUNNING) 상태로 남은 작업을 찾아
    저장된 task_details 그대로 워커를 다시 띄운다.

    레코드의 status/task_details는 변경하지 않고 pid만 새 값으로 바꾼다.
    """

    def __init__(self, registry: TaskRegistry, launcher: WorkerLauncher) -> None:
        self.registry = registry
        self.launcher = launcher

    def resume_in_flight_tasks(self) -> ResumeSummary:
        """
        복구 작업을 실행한다.

        Raises:
            ResumeInProgressError: 다른 복구 작업이 진행 중인 경우
            RegistryReadError: 레지스트리 파일 자체가 손상된 경우 (아무것도 실행하지 않는다)
        """
        logger.info("Checking task registry for interrupted tasks...")
        try:
            with self.registry.lock(blocking=False):
                return self._resume_locked()
        except RegistryLockedError as e:
            raise ResumeInProgressError(str(e)) from e

    def _resume_locked(self) -> ResumeSummary:
        tasks = self.registry.load()
        summary = ResumeSummary()

        # 해석할 수 없는 레코드는 건너뛰고 저장 시 원본 그대로 남긴다
        for vin in tasks.unreadable:
            logger.warning(f"Skipping unreadable task record for VIN {vin}")
            summary.skipped.append(vin)

        for vin, record in tasks.items():
            if not record.is_resumable:
                summary.skipped.append(vin)
                continue

            logger.info(f"Resuming task for VIN {vin} (status={record.status}, previous pid={record.pid})")
            payload = encode_task_payload(record.task_details)
            try:
                pid = self.launcher.launch(payload)
            except WorkerLaunchError as e:
                # 한 VIN의 실패가 나머지 복구를 막지 않는다
                logger.error(f"Failed to resume task for VIN {vin}: {e}")
                summary.failed.append(vin)
                continue

            record.pid = pid
            summary.resumed.append(vin)
            logger.info(f"Task resumed for VIN {vin}, new pid={pid}")

        if summary.updated:
            self.registry.save(tasks)
            logger.info(f"Task registry updated ({len(summary.resumed)} resumed, {len(summary.failed)} failed)")
        else:
            logger.info("No interrupted tasks to resume.")

        return summary


def resume_from_settings(tasks_file: Optional[str] = None, settings: Optional[Settings] = None) -> int:
    """설정으로 복구 작업을 구성해 실행하고 종료 코드를 반환하는 헬퍼 함수."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    registry = TaskRegistry(tasks_file or settings.tasks_file_path)
    launcher = WorkerLauncher(settings.worker_executable, settings.worker_script)

    try:
        summary = ResumeSupervisor(registry, launcher).resume_in_flight_tasks()
    except RegistryReadError as e:
        logger.error(f"Resume aborted: {e}")
        return 1
    except ResumeInProgressError as e:
        logger.warning(f"Resume skipped: {e}")
        return 2

    logger.info(
        f"Resume finished: resumed={summary.resumed} failed={summary.failed} skipped={len(summary.skipped)}"
    )
    return 0
