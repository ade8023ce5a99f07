"""환경변수 기반 설정"""

from __future__ import annotations

import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from charge_watch.clients.http_client import JsonHttpClient
from charge_watch.guard.breaker import BreakerOptions, CircuitBreaker
from charge_watch.guard.presets import (
    PUSH_OPTIONS,
    VEHICLE_DATA_OPTIONS,
    PushCircuitBreaker,
    VehicleDataCircuitBreaker,
)

# 프로젝트 루트 디렉토리 경로 (run_worker.py 위치)
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseModel):
    """프로세스 전역 설정"""

    tasks_file_path: Path = Field(default_factory=lambda: Path.cwd() / "charge_tasks.json")
    worker_executable: str = sys.executable
    worker_script: Path = BASE_DIR / "run_worker.py"
    workflow_name: str = "charge_monitoring"
    workflow_modules: List[str] = Field(default_factory=list)
    log_level: str = "INFO"
    http_timeout_seconds: float = 30.0
    vehicle_breaker: BreakerOptions = Field(default_factory=lambda: replace(VEHICLE_DATA_OPTIONS))
    push_breaker: BreakerOptions = Field(default_factory=lambda: replace(PUSH_OPTIONS))

    @classmethod
    def from_env(cls) -> "Settings":
        """.env와 환경변수에서 설정을 읽는다."""
        load_dotenv()

        defaults = cls()
        return cls(
            tasks_file_path=Path(os.getenv("TASKS_FILE_PATH", str(defaults.tasks_file_path))),
            worker_executable=os.getenv("WORKER_EXECUTABLE", defaults.worker_executable),
            worker_script=Path(os.getenv("WORKER_SCRIPT", str(defaults.worker_script))),
            workflow_name=os.getenv("WORKFLOW_NAME", defaults.workflow_name),
            workflow_modules=_split_csv(os.getenv("WORKFLOW_MODULES", "")),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", str(defaults.http_timeout_seconds))),
            vehicle_breaker=_breaker_options("VEHICLE_BREAKER", VEHICLE_DATA_OPTIONS),
            push_breaker=_breaker_options("PUSH_BREAKER", PUSH_OPTIONS),
        )

    def vehicle_data_breaker(self) -> VehicleDataCircuitBreaker:
        """차량 데이터 조회용 브레이커를 설정값으로 생성한다."""
        return VehicleDataCircuitBreaker(replace(self.vehicle_breaker))

    def push_circuit_breaker(self) -> PushCircuitBreaker:
        """푸시 알림용 브레이커를 설정값으로 생성한다."""
        return PushCircuitBreaker(replace(self.push_breaker))

    def http_client(self, base_url: str, breaker: CircuitBreaker) -> JsonHttpClient:
        """HTTP_TIMEOUT_SECONDS가 적용된 JSON 클라이언트를 생성한다."""
        return JsonHttpClient(base_url, breaker, timeout=self.http_timeout_seconds)


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _breaker_options(prefix: str, preset: BreakerOptions) -> BreakerOptions:
    # 예: VEHICLE_BREAKER_FAILURE_THRESHOLD, VEHICLE_BREAKER_RESET_TIMEOUT_SECONDS
    return BreakerOptions(
        failure_threshold=int(os.getenv(f"{prefix}_FAILURE_THRESHOLD", str(preset.failure_threshold))),
        reset_timeout=float(os.getenv(f"{prefix}_RESET_TIMEOUT_SECONDS", str(preset.reset_timeout))),
        monitoring_period=float(os.getenv(f"{prefix}_MONITORING_PERIOD_SECONDS", str(preset.monitoring_period))),
    )
