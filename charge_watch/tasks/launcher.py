"""워커 프로세스 실행 및 페이로드 인코딩"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Union

logger = logging.getLogger(__name__)


class TaskPayloadError(ValueError):
    """워커 인자를 작업 파라미터로 복원할 수 없는 경우"""


class WorkerLaunchError(RuntimeError):
    """워커 프로세스를 시작하지 못한 경우"""

    def __init__(self, command: List[str], reason: str) -> None:
        super().__init__(f"Failed to launch worker {command[:2]}: {reason}")
        self.command = command
        self.reason = reason


def encode_task_payload(task_details: Dict[str, Any]) -> str:
    """작업 파라미터를 명령행 인자 하나로 전달할 수 있도록 JSON + base64로 인코딩한다."""
    raw = json.dumps(task_details, ensure_ascii=False).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_task_payload(token: str) -> Dict[str, Any]:
    """encode_task_payload의 역변환."""
    try:
        raw = base64.b64decode(token, validate=True)
        task_details = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TaskPayloadError(f"Invalid task payload: {e}") from e

    if not isinstance(task_details, dict):
        raise TaskPayloadError("Task payload must be a JSON object")
    return task_details


class WorkerLauncher:
    """
    `<executable> <script> <payload>` 형태로 독립 워커 프로세스를 띄운다.

    완료를 기다리지 않는다 (fire-and-forget). 워커는 새 세션에서 실행되므로
    실행한 프로세스가 종료되어도 함께 종료되지 않는다.
    """

    def __init__(self, executable: str, script: Union[str, Path]) -> None:
        self.executable = executable
        self.script = str(script)

    def build_command(self, payload: str) -> List[str]:
        return [self.executable, self.script, payload]

    def launch(self, payload: str) -> int:
        """
        워커를 시작하고 PID를 반환한다.

        Raises:
            WorkerLaunchError: OS 수준에서 프로세스 생성에 실패한 경우
        """
        command = self.build_command(payload)
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                start_new_session=True,
                close_fds=True,
            )
        except OSError as e:
            raise WorkerLaunchError(command, str(e)) from e

        logger.info(f"Worker started: {self.script} (pid={process.pid})")
        return process.pid
