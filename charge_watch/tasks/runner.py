"""Workflow Runner (워커 프로세스 내부 실행)"""

from __future__ import annotations

import importlib
import logging
from typing import Optional

from charge_watch.config import Settings
from charge_watch.logging_config import setup_logging
from charge_watch.tasks.launcher import TaskPayloadError, decode_task_payload
from charge_watch.tasks.registry import UnknownWorkflowError, get_workflow
from charge_watch.tasks.store import TaskRegistry

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_WORKFLOW_FAILED = 1
EXIT_BAD_PAYLOAD = 2
# WORKFLOW_MODULES import 실패 또는 WORKFLOW_NAME 미등록
EXIT_WORKFLOW_UNAVAILABLE = 3


def load_workflow_modules(modules: list[str]) -> None:
    """Workflow 모듈을 import 해서 @register_workflow 등록을 실행한다."""
    for module in modules:
        importlib.import_module(module)


async def run_workflow(payload: str, settings: Optional[Settings] = None) -> int:
    """
    명령행으로 받은 payload를 복원해 워크플로를 실행하고 종료 코드를 반환한다.

    Args:
        payload: encode_task_payload로 인코딩된 작업 파라미터
        settings: 기본값은 Settings.from_env()
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    try:
        task_details = decode_task_payload(payload)
    except TaskPayloadError as e:
        logger.error(f"Cannot start workflow: {e}")
        return EXIT_BAD_PAYLOAD

    registry = TaskRegistry(settings.tasks_file_path)
    try:
        load_workflow_modules(settings.workflow_modules)
        workflow = get_workflow(settings.workflow_name, task_details, registry, settings)
    except ImportError as e:
        logger.error(f"Cannot import workflow modules {settings.workflow_modules}: {e}")
        return EXIT_WORKFLOW_UNAVAILABLE
    except UnknownWorkflowError as e:
        logger.error(f"Cannot start workflow: {e.args[0]}")
        return EXIT_WORKFLOW_UNAVAILABLE

    vin = workflow.vin

    logger.info(f"Workflow {settings.workflow_name} started for VIN {vin}")
    try:
        await workflow.run()
    except Exception:
        logger.exception(f"Workflow {settings.workflow_name} failed for VIN {vin}")
        return EXIT_WORKFLOW_FAILED

    logger.info(f"Workflow {settings.workflow_name} finished for VIN {vin}")
    return EXIT_OK
