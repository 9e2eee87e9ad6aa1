"""
审计日志：按运行 ID 写入的结构化事件流

每个事件带时间戳、事件类型和事件相关字段。文件落盘使用 loguru 的
JSON sink（只接收本次运行的事件），同时在内存里保留一份事件列表，
运行结束后可直接用来核对执行过程。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...core.constants import EventKind
from ...core.errors import AuditSinkError
from ...core.logger import get_session_logger, logger
from ...core.timeutils import Clock, file_stamp, format_timestamp


@dataclass
class AuditEvent:
    timestamp: datetime
    kind: EventKind
    fields: Dict[str, Any] = field(default_factory=dict)

    def line(self) -> str:
        """人类可读的一行：[时间] KIND | k: v | ..."""
        parts = [f"[{format_timestamp(self.timestamp)}] {self.kind.value}"]
        for key, value in self.fields.items():
            if value is None or value == "" or value == {}:
                continue
            parts.append(f"{key}: {value}")
        return " | ".join(parts)


class AuditLog:
    """只追加的审计事件流"""

    def __init__(
        self,
        run_id: str,
        log_dir: Optional[Path] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.run_id = run_id
        self._clock = clock or Clock()
        self.events: List[AuditEvent] = []
        self.log_path: Optional[Path] = None
        self._sink_id: Optional[int] = None
        self._logger = logger.bind(run_id=run_id)

        if log_dir is not None:
            stamp = file_stamp(self._clock.now())
            try:
                self._logger, self._sink_id = get_session_logger(run_id, Path(log_dir), stamp)
            except OSError as e:
                raise AuditSinkError(f"无法初始化审计日志 {log_dir}: {e}") from e
            self.log_path = Path(log_dir) / f"session_{run_id}_{stamp}.log"

    def emit(self, kind: EventKind, **fields: Any) -> AuditEvent:
        event = AuditEvent(timestamp=self._clock.now(), kind=kind, fields=dict(fields))
        self.events.append(event)
        level = "WARNING" if kind in _WARN_EVENTS else "INFO"
        self._logger.bind(event=kind.value, **_jsonable(fields)).log(level, event.line())
        return event

    def of_kind(self, kind: EventKind) -> List[AuditEvent]:
        return [e for e in self.events if e.kind == kind]

    def close(self) -> None:
        if self._sink_id is not None:
            logger.remove(self._sink_id)
            self._sink_id = None


_WARN_EVENTS = frozenset({
    EventKind.WORKFLOW_TIMEOUT_APPROACHING,
    EventKind.WORKFLOW_FAILED,
    EventKind.WORKFLOW_ERROR,
    EventKind.STEP_SKIPPED,
    EventKind.STEP_EXCEPTION,
    EventKind.ACTION_RETRY,
    EventKind.SCREENSHOT_ERROR,
})


def _jsonable(fields: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, (str, int, float, bool, type(None))):
            out[key] = value
        elif isinstance(value, dict):
            out[key] = _jsonable(value)
        elif isinstance(value, (list, tuple)):
            out[key] = [v if isinstance(v, (str, int, float, bool)) else str(v) for v in value]
        else:
            out[key] = str(value)
    return out
