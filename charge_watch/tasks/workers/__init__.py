"""Workflow 모듈"""

# 구체 워크플로는 WORKFLOW_MODULES에 지정한 모듈에서 @register_workflow로 등록한다
from charge_watch.tasks.workers.base import BaseWorkflow

__all__ = ["BaseWorkflow"]
