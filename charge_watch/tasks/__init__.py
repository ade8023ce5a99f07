"""작업 레지스트리 및 복구 (JSON 파일 기반)"""

from charge_watch.tasks.models import TaskRecord, TaskStatus
from charge_watch.tasks.store import TaskRegistry, TaskTable
from charge_watch.tasks.producer import TaskProducer
from charge_watch.tasks.supervisor import ResumeSupervisor
from charge_watch.tasks.registry import UnknownWorkflowError, register_workflow, get_workflow

__all__ = [
    "TaskRecord",
    "TaskStatus",
    "TaskRegistry",
    "TaskTable",
    "TaskProducer",
    "ResumeSupervisor",
    "register_workflow",
    "get_workflow",
    "UnknownWorkflowError",
]
