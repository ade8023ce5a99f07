"""Workflow Registry (WORKFLOW_NAME -> Workflow 클래스)"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Type

if TYPE_CHECKING:
    from charge_watch.config import Settings
    from charge_watch.tasks.store import TaskRegistry
    from charge_watch.tasks.workers.base import BaseWorkflow

# WORKFLOW_MODULES를 import 하면 채워진다
WORKFLOW_REGISTRY: Dict[str, Type["BaseWorkflow"]] = {}


class UnknownWorkflowError(KeyError):
    """WORKFLOW_NAME에 해당하는 Workflow가 등록되지 않은 경우"""

    def __init__(self, name: str) -> None:
        registered = sorted(WORKFLOW_REGISTRY)
        super().__init__(f"Unknown workflow: {name} (registered: {registered})")
        self.name = name
        self.registered = registered


def register_workflow(name: str):
    """
    Workflow 클래스를 name으로 등록하는 데코레이터.

    같은 이름을 다른 클래스가 다시 쓰면 ValueError.

    사용 예:
        @register_workflow("charge_monitoring")
        class ChargeMonitoringWorkflow(BaseWorkflow):
            async def run(self) -> None:
                ...
    """
    def decorator(cls: Type["BaseWorkflow"]) -> Type["BaseWorkflow"]:
        existing = WORKFLOW_REGISTRY.get(name)
        if existing is not None and _class_path(existing) != _class_path(cls):
            raise ValueError(f"Workflow {name} is already registered by {_class_path(existing)}")
        WORKFLOW_REGISTRY[name] = cls
        return cls
    return decorator


def get_workflow(
    name: str,
    task_details: Dict[str, Any],
    registry: "TaskRegistry",
    settings: Optional["Settings"] = None,
) -> "BaseWorkflow":
    """
    name에 해당하는 Workflow 인스턴스를 생성한다.

    Raises:
        UnknownWorkflowError: 등록되지 않은 name인 경우
    """
    workflow_cls = WORKFLOW_REGISTRY.get(name)
    if workflow_cls is None:
        raise UnknownWorkflowError(name)
    return workflow_cls(task_details, registry, settings)


def _class_path(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"
