"""
数据模型层 - 定义系统核心数据结构

所有模块通过这些模型交互，实现解耦：
- Control / SectionMarker: 控件与分区边界（不可变）
- Fragment / FragmentPair: 片段与重复节片段对
- Table: 片段稠密表格描述
- Area: 组合布局区域（含默认隐藏指令）
- Diagnostic: 非致命诊断事件
- FragmentLayout / FormLayoutResult: 流水线结果
"""

from .area import Area, AreaKind, VisibilityDirective
from .control import Control, RepeatingSectionInfo, SectionInfo, SectionKind, SectionMarker
from .diagnostic import Diagnostic, DiagnosticCode
from .fragment import Fragment, FragmentDescriptor, FragmentPair, FragmentRole, PositionedEntry
from .position import GridPosition
from .result import FormLayoutResult, FragmentLayout
from .table import Table, TableCell, TableRow

__all__ = [
    "GridPosition",
    "Control",
    "SectionInfo",
    "RepeatingSectionInfo",
    "SectionMarker",
    "SectionKind",
    "Fragment",
    "FragmentDescriptor",
    "FragmentPair",
    "FragmentRole",
    "PositionedEntry",
    "Table",
    "TableRow",
    "TableCell",
    "Area",
    "AreaKind",
    "VisibilityDirective",
    "Diagnostic",
    "DiagnosticCode",
    "FragmentLayout",
    "FormLayoutResult",
]
