"""공통 테스트 픽스처"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from charge_watch.tasks.launcher import WorkerLaunchError, decode_task_payload
from charge_watch.tasks.store import TaskRegistry


class FakeClock:
    """수동으로 진행시키는 시계 (초 단위)"""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLauncher:
    """
    프로세스를 띄우지 않고 호출만 기록하는 launcher.

    task_details에 "fail_launch": true가 있으면 WorkerLaunchError를 던진다.
    """

    def __init__(self, first_pid: int = 4242) -> None:
        self.next_pid = first_pid
        self.payloads: List[str] = []

    def launch(self, payload: str) -> int:
        details = decode_task_payload(payload)
        if details.get("fail_launch"):
            raise WorkerLaunchError(["python", "run_worker.py"], "spawn failed")
        self.payloads.append(payload)
        pid = self.next_pid
        self.next_pid += 1
        return pid

    @property
    def launched_details(self) -> List[Dict[str, Any]]:
        return [decode_task_payload(p) for p in self.payloads]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture()
def tasks_file(tmp_path) -> Path:
    return tmp_path / "charge_tasks.json"


@pytest.fixture()
def registry(tasks_file) -> TaskRegistry:
    return TaskRegistry(tasks_file)


@pytest.fixture()
def write_tasks(tasks_file):
    """레지스트리 파일을 직접 작성한다."""
    def _write(data: Dict[str, Any]) -> None:
        tasks_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return _write


@pytest.fixture()
def read_tasks(tasks_file):
    """레지스트리 파일을 JSON 그대로 읽는다."""
    def _read() -> Dict[str, Any]:
        return json.loads(tasks_file.read_text(encoding="utf-8"))
    return _read
