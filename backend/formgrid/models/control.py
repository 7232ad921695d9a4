"""
控件模型 - 表单控件与分区边界

对应表单分析结果中 Views[].Controls[] / Views[].Sections[] 的结构，
字段别名与源JSON键名一致，可直接 model_validate 源数据。

控件与分区标记创建后不可变，行号重排一律通过 model_copy 生成新对象。
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SectionKind(str, Enum):
    """分区类型"""
    REPEATING = "repeating"
    STATIC = "static"


class SectionInfo(BaseModel):
    """控件所在分区的行范围（随行号重排同步改写）"""
    name: str | None = Field(None, alias="Name")
    start_row: int | None = Field(None, alias="StartRow")
    end_row: int | None = Field(None, alias="EndRow")

    model_config = {"frozen": True, "populate_by_name": True}

    def remap(self, row_map: dict[int, int]) -> SectionInfo:
        """按行映射改写起止行（映射外的行保持不变）"""
        update: dict[str, Any] = {}
        if self.start_row is not None and self.start_row in row_map:
            update["start_row"] = row_map[self.start_row]
        if self.end_row is not None and self.end_row in row_map:
            update["end_row"] = row_map[self.end_row]
        return self.model_copy(update=update) if update else self

    def unmapped_rows(self, row_map: dict[int, int]) -> list[int]:
        """返回不在映射中的行"""
        return [
            r for r in (self.start_row, self.end_row)
            if r is not None and r not in row_map
        ]


class RepeatingSectionInfo(BaseModel):
    """重复节归属信息（来自源数据，不做推导）"""
    is_in_repeating_section: bool = Field(False, alias="IsInRepeatingSection")
    repeating_section_name: str | None = Field(None, alias="RepeatingSectionName")
    parent_repeating_section_name: str | None = Field(
        None, alias="ParentRepeatingSectionName"
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def is_nested(self) -> bool:
        return bool(self.parent_repeating_section_name)


class Control(BaseModel):
    """表单控件"""
    id: str = Field(..., alias="CtrlId", description="控件ID")
    type: str = Field(..., alias="Type", description="控件类型(label/textfield/richtext...)")
    name: str = Field("", alias="Name")
    label: str | None = Field(None, alias="Label")
    grid_position: str = Field("", alias="GridPosition", description="坐标串，如 3B")

    section_info: SectionInfo | None = Field(None, alias="SectionInfo")
    repeating_section_info: RepeatingSectionInfo | None = Field(
        None, alias="RepeatingSectionInfo"
    )

    # 源数据中的附加属性（如 isAutoGenerated）
    additional_properties: dict[str, Any] = Field(
        default_factory=dict, alias="AdditionalProperties"
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def type_key(self) -> str:
        """小写类型，用于类型比较"""
        return (self.type or "").lower()

    @property
    def name_key(self) -> str:
        """小写名称，用于同名判定"""
        return (self.name or "").lower()

    @property
    def repeating_section_name(self) -> str | None:
        info = self.repeating_section_info
        if info and info.is_in_repeating_section:
            return info.repeating_section_name
        return None

    @property
    def is_auto_generated(self) -> bool:
        return str(self.additional_properties.get("isAutoGenerated", "")).lower() == "true"

    def with_position(self, token: str, row_map: dict[int, int] | None = None) -> Control:
        """返回坐标改写后的副本（可同时改写 section_info）"""
        update: dict[str, Any] = {"grid_position": token}
        if row_map is not None and self.section_info is not None:
            update["section_info"] = self.section_info.remap(row_map)
        return self.model_copy(update=update)


class SectionMarker(BaseModel):
    """片段内分区边界标记"""
    name: str = Field(..., alias="Name")
    start_row: int = Field(..., alias="StartRow")
    end_row: int = Field(..., alias="EndRow")
    kind: SectionKind = Field(SectionKind.STATIC, alias="Type")

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def is_repeating(self) -> bool:
        return self.kind == SectionKind.REPEATING

    def remap(self, row_map: dict[int, int]) -> SectionMarker:
        """按行映射改写起止行（映射外的行保持不变）"""
        return self.model_copy(
            update={
                "start_row": row_map.get(self.start_row, self.start_row),
                "end_row": row_map.get(self.end_row, self.end_row),
            }
        )

    def unmapped_rows(self, row_map: dict[int, int]) -> list[int]:
        return [r for r in (self.start_row, self.end_row) if r not in row_map]
