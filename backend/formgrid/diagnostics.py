"""
诊断输出 - IDiagnosticSink 的具体实现

职责：
1. 收集各阶段产生的非致命诊断事件
2. 以 WARNING 级别写日志（与算法逻辑分离）
3. 提供按代码过滤的便捷访问

使用方式：
    sink = DiagnosticCollector()
    codec = PositionCodec(sink=sink)
    codec.decode("abc")
    assert sink.codes() == [DiagnosticCode.MALFORMED_POSITION_TOKEN]
"""

from __future__ import annotations

import logging

from .models import Diagnostic, DiagnosticCode

logger = logging.getLogger(__name__)


class DiagnosticCollector:
    """收集诊断事件并写日志"""

    def __init__(self, log: bool = True):
        self.diagnostics: list[Diagnostic] = []
        self._log = log

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        if self._log:
            subject = diagnostic.fragment_id or "-"
            logger.warning(f"[{subject}] {diagnostic.code.value}: {diagnostic.message}")

    def codes(self) -> list[DiagnosticCode]:
        return [d.code for d in self.diagnostics]

    def of(self, code: DiagnosticCode) -> list[Diagnostic]:
        """按诊断代码过滤"""
        return [d for d in self.diagnostics if d.code == code]

    def clear(self) -> None:
        self.diagnostics.clear()

    def __len__(self) -> int:
        return len(self.diagnostics)


class NullSink:
    """丢弃全部诊断事件"""

    def emit(self, diagnostic: Diagnostic) -> None:
        pass
