"""
流水线阶段定义

职责：
1. 定义单片段布局与多片段组合的阶段名称及顺序
2. 阶段可挂接自定义处理函数（默认由执行器按名称分派）

测试要点：
- test_fragment_stage_order: 片段阶段顺序
- test_stage_handler: 自定义处理函数
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable


class StageEnum(str, Enum):
    """流水线阶段枚举"""
    # 单片段布局
    DECODE_POSITIONS = "DECODE_POSITIONS"
    COMPACT_ROWS = "COMPACT_ROWS"
    EXTRACT_TITLE = "EXTRACT_TITLE"
    RESOLVE_SPANS = "RESOLVE_SPANS"
    ASSEMBLE_TABLE = "ASSEMBLE_TABLE"
    # 多片段组合
    PAIR_FRAGMENTS = "PAIR_FRAGMENTS"
    ORDER_ENTRIES = "ORDER_ENTRIES"
    ASSIGN_VISIBILITY = "ASSIGN_VISIBILITY"


@dataclass
class PipelineStage:
    """流水线阶段"""
    name: str
    handler: Callable[[dict[str, Any]], None] | None = None  # 执行函数

    def execute(self, context: dict[str, Any]) -> None:
        """执行阶段"""
        if self.handler:
            self.handler(context)


# 单片段布局各阶段
FRAGMENT_STAGES: list[PipelineStage] = [
    PipelineStage(StageEnum.DECODE_POSITIONS.value),
    PipelineStage(StageEnum.COMPACT_ROWS.value),
    PipelineStage(StageEnum.EXTRACT_TITLE.value),
    PipelineStage(StageEnum.RESOLVE_SPANS.value),
    PipelineStage(StageEnum.ASSEMBLE_TABLE.value),
]

# 多片段组合各阶段
COMPOSITION_STAGES: list[PipelineStage] = [
    PipelineStage(StageEnum.PAIR_FRAGMENTS.value),
    PipelineStage(StageEnum.ORDER_ENTRIES.value),
    PipelineStage(StageEnum.ASSIGN_VISIBILITY.value),
]
