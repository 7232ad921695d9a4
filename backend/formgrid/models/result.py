"""
流水线结果模型 - 单片段布局结果与整表单组合结果

对应渲染/装配模块的唯一输入
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .area import Area
from .control import Control, SectionMarker
from .diagnostic import Diagnostic, DiagnosticCode
from .table import Table


class FragmentLayout(BaseModel):
    """单片段布局结果"""
    fragment_id: str
    table: Table
    title: str | None = None

    # 压缩行映射（原行号 -> 新行号，标题平移前）
    row_map: dict[int, int] = Field(default_factory=dict)

    # 压缩+标题提取后的控件与分区标记
    controls: list[Control] = Field(default_factory=list)
    markers: list[SectionMarker] = Field(default_factory=list)


class FormLayoutResult(BaseModel):
    """整表单布局结果"""
    tables: dict[str, FragmentLayout] = Field(default_factory=dict)
    areas: list[Area] = Field(default_factory=list)

    # 未成对的片段ID（已告警，未组合）
    unmatched: list[str] = Field(default_factory=list)

    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.diagnostics)

    def flags(self) -> list[str]:
        """告警标记（去重，保序）"""
        seen: list[str] = []
        for d in self.diagnostics:
            flag = d.as_flag()
            if flag not in seen:
                seen.append(flag)
        return seen

    def diagnostics_of(self, code: DiagnosticCode) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.code == code]

    def area_order(self) -> list[str]:
        """按显示顺序展开的片段ID"""
        return [ref for area in self.areas for ref in area.fragment_refs]
