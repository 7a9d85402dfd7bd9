"""
检测事件记录

职责：
1. 追加检测事件（O(1)）
2. 清空 / 查询（all() 固定为时间正序：最早的在前）
3. 导出为纯文本或 CSV 字节流（调用方负责写文件）

存储方式：进程内存（不落盘）
"""
import re
import threading
from collections import deque
from datetime import datetime
from typing import List, Optional, Tuple, Dict, Any

from scene_sentinel.common import Logger
from scene_sentinel.errors import UnsupportedExportFormat
from scene_sentinel.models import DetectionEvent

EXPORT_FORMATS = ("plaintext", "csv")

# 纯文本导出行格式：<ISO8601>: <description> (<confidence>%)
_PLAINTEXT_LINE = re.compile(r"^(?P<ts>\S+): (?P<desc>.*) \((?P<conf>-?\d+(?:\.\d+)?)%\)$")


class DetectionLedger:
    """检测事件记录

    线程安全：监控线程追加，Web 线程查询 / 清空 / 导出
    """

    def __init__(self, max_events: int = 0, log_dir: Optional[str] = None):
        """
        Args:
            max_events: 最多保留的事件数（0 表示不限制，超出时丢弃最早的）
            log_dir: 日志目录
        """
        self.max_events = max_events
        self.logger = Logger(log_dir)

        self._lock = threading.Lock()
        self._events = deque(maxlen=max_events if max_events > 0 else None)

    def append(self, event: DetectionEvent):
        """追加事件"""
        with self._lock:
            self._events.append(event)

        self.logger.log("ledger", "info",
                        f"记录检测事件: {event.criterion.value} {event.confidence:.2f}%",
                        event_id=event.id)

    def clear(self):
        """清空所有事件"""
        with self._lock:
            count = len(self._events)
            self._events.clear()

        self.logger.log("ledger", "info", f"已清空 {count} 条检测事件")

    def all(self) -> List[DetectionEvent]:
        """所有事件（时间正序）"""
        with self._lock:
            return list(self._events)

    def newest_first(self, limit: Optional[int] = None) -> List[DetectionEvent]:
        """所有事件（时间倒序，用于显示）"""
        events = self.all()
        events.reverse()
        return events[:limit] if limit else events

    def resize(self, max_events: int):
        """修改保留上限（超出时丢弃最早的事件）"""
        with self._lock:
            before = len(self._events)
            self.max_events = max_events
            self._events = deque(self._events, maxlen=max_events if max_events > 0 else None)
            dropped = before - len(self._events)

        self.logger.log("ledger", "info", f"保留上限已修改: {max_events or '不限制'}，丢弃 {dropped} 条")

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    # ==================== 导出 ====================

    def export(self, export_format: str = "plaintext") -> bytes:
        """导出为字节流（时间正序）

        纯文本：每行 "<ISO8601>: <description> (<confidence>%)"
        CSV：每行 "<ISO8601>,<type>,<confidence>%,<description>"（无表头，不转义）

        Args:
            export_format: plaintext 或 csv

        Returns:
            UTF-8 字节流

        Raises:
            UnsupportedExportFormat: 不支持的格式
        """
        events = self.all()

        if export_format == "plaintext":
            lines = [format_plaintext_line(e) for e in events]
        elif export_format == "csv":
            lines = [format_csv_line(e) for e in events]
        else:
            raise UnsupportedExportFormat(f"不支持的导出格式: {export_format}（可选: {', '.join(EXPORT_FORMATS)}）")

        return "\n".join(lines).encode("utf-8")

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            count = len(self._events)
            latest = self._events[-1].timestamp.isoformat() if self._events else None

        return {
            "count": count,
            "max_events": self.max_events,
            "latest": latest
        }


def format_plaintext_line(event: DetectionEvent) -> str:
    return f"{event.timestamp.isoformat()}: {event.description} ({event.confidence:.2f}%)"


def format_csv_line(event: DetectionEvent) -> str:
    return f"{event.timestamp.isoformat()},{event.criterion.value},{event.confidence:.2f}%,{event.description}"


def parse_plaintext_export(data: bytes) -> List[Tuple[datetime, str, float]]:
    """解析纯文本导出

    Returns:
        [(timestamp, description, confidence), ...]

    Raises:
        ValueError: 行格式不正确
    """
    records = []
    for line_no, line in enumerate(data.decode("utf-8").splitlines(), start=1):
        if not line.strip():
            continue

        match = _PLAINTEXT_LINE.match(line)
        if not match:
            raise ValueError(f"第 {line_no} 行格式错误: {line}")

        records.append((
            datetime.fromisoformat(match.group("ts")),
            match.group("desc"),
            float(match.group("conf"))
        ))

    return records
