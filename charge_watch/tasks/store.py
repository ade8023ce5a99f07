"""Task 레지스트리 (JSON 파일 기반)"""

from __future__ import annotations

import fcntl
import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from pydantic import ValidationError

from charge_watch.tasks.models import TaskRecord

logger = logging.getLogger(__name__)

# vin은 레지스트리 키이므로 update로 바꿀 수 없다
UPDATABLE_FIELDS = frozenset(name for name in TaskRecord.model_fields if name != "vin")


class RegistryReadError(RuntimeError):
    """레지스트리 파일을 읽거나 해석할 수 없는 경우 (파일이 없는 경우는 제외)"""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to read task registry {path}: {reason}")
        self.path = path
        self.reason = reason


class RegistryLockedError(RuntimeError):
    """다른 프로세스가 레지스트리 락을 잡고 있는 경우"""


class TaskTable(dict):
    """
    load() 결과. 유효한 레코드는 VIN -> TaskRecord로 담고,
    TaskRecord로 해석할 수 없는 레코드는 unreadable에 원본 값 그대로 보관한다.

    save()는 unreadable 레코드를 손대지 않고 다시 쓴다.
    """

    def __init__(self, records: Optional[Dict[str, TaskRecord]] = None, unreadable: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(records or {})
        self.unreadable: Dict[str, Any] = dict(unreadable or {})


class TaskRegistry:
    """
    VIN -> TaskRecord 매핑을 JSON 파일 하나에 통째로 저장하는 레지스트리.

    load/save는 락을 잡지 않는다. 여러 단계를 묶어야 하는 호출자는
    lock() 안에서 load -> 수정 -> save 순서로 사용한다.
    get/upsert/update/remove는 내부에서 락을 잡는다.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def load(self) -> TaskTable:
        """
        레지스트리를 읽는다. 파일이 없으면 빈 매핑을 반환한다.

        개별 레코드가 TaskRecord 형식이 아니면 (null, 알 수 없는 status 등)
        경고만 남기고 unreadable로 분리한다.

        Raises:
            RegistryReadError: 파일을 읽을 수 없거나 JSON 객체가 아닌 경우
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return TaskTable()
        except OSError as e:
            raise RegistryReadError(self.path, str(e)) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise RegistryReadError(self.path, f"invalid JSON ({e})") from e

        if not isinstance(data, dict):
            raise RegistryReadError(self.path, "top-level value must be an object")

        tasks = TaskTable()
        for vin, item in data.items():
            if not isinstance(item, dict):
                logger.warning(f"Unreadable task record for VIN {vin}: not an object ({item!r})")
                tasks.unreadable[vin] = item
                continue
            try:
                tasks[vin] = TaskRecord.from_stored(vin, item)
            except ValidationError as e:
                logger.warning(f"Unreadable task record for VIN {vin}: {e.error_count()} validation error(s)")
                tasks.unreadable[vin] = item
        return tasks

    def save(self, tasks: Dict[str, TaskRecord]) -> None:
        """
        레지스트리 전체를 원자적으로 덮어쓴다 (임시 파일 작성 후 교체).

        tasks가 TaskTable이면 unreadable 레코드도 원본 그대로 함께 쓴다.
        같은 VIN의 유효한 레코드가 있으면 그쪽이 우선한다.
        """
        unreadable = getattr(tasks, "unreadable", {})
        payload: Dict[str, Any] = {vin: item for vin, item in unreadable.items() if vin not in tasks}
        payload.update((vin, record.to_stored()) for vin, record in tasks.items())
        self.path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    @contextmanager
    def lock(self, blocking: bool = True) -> Iterator[None]:
        """
        레지스트리 전용 락 파일에 배타적 flock을 잡는다.

        Raises:
            RegistryLockedError: blocking=False이고 다른 프로세스가 락을 잡고 있는 경우
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o664)
        try:
            flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
            try:
                fcntl.flock(fd, flags)
            except BlockingIOError as e:
                raise RegistryLockedError(f"Task registry {self.path} is locked by another process") from e
            try:
                yield
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    def get(self, vin: str) -> Optional[TaskRecord]:
        """VIN의 레코드를 조회한다."""
        with self.lock():
            return self.load().get(vin)

    def upsert(self, record: TaskRecord) -> None:
        """레코드를 추가하거나 교체한다."""
        with self.lock():
            tasks = self.load()
            tasks[record.vin] = record
            self.save(tasks)

    def update(self, vin: str, **fields: Any) -> bool:
        """
        레코드의 일부 필드를 변경한다.

        필드 이름은 TaskRecord의 속성 이름을 쓴다 (taskDetails가 아니라 task_details).

        Returns:
            VIN이 레지스트리에 없으면 False

        Raises:
            ValueError: TaskRecord에 없는 필드 이름이 포함된 경우
        """
        unknown = sorted(name for name in fields if name not in UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown task record fields: {unknown} (allowed: {sorted(UPDATABLE_FIELDS)})")

        with self.lock():
            tasks = self.load()
            record = tasks.get(vin)
            if record is None:
                return False
            for name, value in fields.items():
                setattr(record, name, value)
            self.save(tasks)
        logger.info(f"Task {vin} updated: {sorted(fields)}")
        return True

    def remove(self, vin: str) -> bool:
        """레코드를 삭제한다. VIN이 없으면 False."""
        with self.lock():
            tasks = self.load()
            if vin not in tasks and vin not in tasks.unreadable:
                return False
            tasks.pop(vin, None)
            tasks.unreadable.pop(vin, None)
            self.save(tasks)
        logger.info(f"Task {vin} removed from registry")
        return True
