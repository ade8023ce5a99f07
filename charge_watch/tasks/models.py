"""Task 모델 정의"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """작업 상태"""
    PREPARING = "PREPARING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# 재시작 시 복구 대상이 되는 상태
IN_FLIGHT_STATUSES = frozenset({TaskStatus.PREPARING, TaskStatus.RUNNING})


class TaskRecord(BaseModel):
    """
    차량(VIN) 하나에 대한 작업 레코드.

    레지스트리 파일에서는 VIN이 키이므로 vin 필드는 저장하지 않는다.
    task_details는 워커를 동일하게 재실행하기 위한 파라미터이며 내용은 해석하지 않는다.
    정의되지 않은 키도 그대로 보존한다.
    """
    vin: str = Field(exclude=True)
    status: TaskStatus
    task_details: Optional[Dict[str, Any]] = Field(default=None, alias="taskDetails")
    pid: Optional[int] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    latest_vehicle_data: Optional[Dict[str, Any]] = Field(default=None, alias="latestVehicleData")

    class Config:
        use_enum_values = True
        populate_by_name = True
        extra = "allow"

    @property
    def is_in_flight(self) -> bool:
        return TaskStatus(self.status) in IN_FLIGHT_STATUSES

    @property
    def is_resumable(self) -> bool:
        """진행 중 상태이면서 재실행 파라미터가 있는지 여부."""
        return self.is_in_flight and self.task_details is not None

    @classmethod
    def from_stored(cls, vin: str, data: Dict[str, Any]) -> "TaskRecord":
        """레지스트리 파일의 레코드를 모델로 변환한다."""
        return cls.model_validate({**data, "vin": vin})

    def to_stored(self) -> Dict[str, Any]:
        """레지스트리 파일 형식으로 변환한다 (로드 시 없던 키는 쓰지 않는다)."""
        data = self.model_dump(by_alias=True, mode="json")
        unset = {
            field.alias or name
            for name, field in type(self).model_fields.items()
            if name not in self.model_fields_set
        }
        return {key: value for key, value in data.items() if key not in unset}
