"""
流水线模块 - 阶段编排与执行

子模块：
- stages: 流水线各阶段定义
- executor: 流水线执行器
"""

from .executor import PipelineExecutor
from .stages import COMPOSITION_STAGES, FRAGMENT_STAGES, PipelineStage, StageEnum

__all__ = [
    "PipelineStage",
    "StageEnum",
    "FRAGMENT_STAGES",
    "COMPOSITION_STAGES",
    "PipelineExecutor",
]
