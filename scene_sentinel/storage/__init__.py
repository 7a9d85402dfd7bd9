"""
Storage 模块 - 检测事件记录
"""

from .detection_ledger import (
    DetectionLedger,
    EXPORT_FORMATS,
    format_plaintext_line,
    format_csv_line,
    parse_plaintext_export
)

__all__ = [
    'DetectionLedger',
    'EXPORT_FORMATS',
    'format_plaintext_line',
    'format_csv_line',
    'parse_plaintext_export',
]
