"""
诊断事件模型 - 非致命告警的结构化表示

所有告警都不中断流水线，由调用方决定是否阻断后续部署
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class DiagnosticCode(str, Enum):
    """诊断代码"""
    MALFORMED_POSITION_TOKEN = "MalformedPositionToken"
    ORPHANED_CONTROL = "OrphanedControl"
    UNMATCHED_PAIR = "UnmatchedPair"
    UNRESOLVED_ORDER_KEY = "UnresolvedOrderKey"
    SPAN_CONFLICT = "SpanConflict"
    UNMAPPED_MARKER_ROW = "UnmappedMarkerRow"
    DUPLICATE_FRAGMENT = "DuplicateFragment"


class Diagnostic(BaseModel):
    """诊断事件"""
    code: DiagnosticCode
    message: str
    fragment_id: str | None = None
    control_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    def as_flag(self) -> str:
        """转为简短告警标记"""
        subject = self.control_id or self.fragment_id
        return f"{self.code.value}:{subject}" if subject else self.code.value
