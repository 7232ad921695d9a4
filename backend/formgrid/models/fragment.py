"""
片段模型 - 独立可渲染的布局单元及其成对组合

- Fragment: 一个片段（主视图/Part视图/重复节的List或Item视图）
- FragmentPair: 同一重复节的 List + Item 片段对
- PositionedEntry: 带排序键的片段或片段对
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, Field

from .control import Control, SectionMarker


class FragmentRole(str, Enum):
    """片段角色"""
    STANDALONE = "standalone"
    LIST = "list"
    ITEM = "item"


class FragmentDescriptor(BaseModel):
    """片段描述（外部输入）"""
    id: str
    role: FragmentRole = FragmentRole.STANDALONE
    section_name: str | None = None
    parent_section_name: str | None = None

    model_config = {"frozen": True}


class Fragment(BaseModel):
    """片段（控件集合 + 分区标记）"""
    descriptor: FragmentDescriptor
    controls: list[Control] = Field(default_factory=list)
    markers: list[SectionMarker] = Field(default_factory=list)

    # 原始顺序位置（排序兜底用）
    sequence_position: int = 0

    # 外部已知的显式位置（优先于控件行推导）
    order_hint: int | None = None

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def role(self) -> FragmentRole:
        return self.descriptor.role

    @property
    def is_pair_half(self) -> bool:
        return self.role in (FragmentRole.LIST, FragmentRole.ITEM)


class FragmentPair(BaseModel):
    """重复节片段对（List + Item）"""
    list_fragment: Fragment
    item_fragment: Fragment
    section_name: str

    # 源数据中无父重复节即为顶层（读取而非推导）
    is_top_level: bool = True

    @property
    def id(self) -> str:
        return self.section_name

    @property
    def member_ids(self) -> tuple[str, str]:
        return self.list_fragment.id, self.item_fragment.id


class PositionedEntry(BaseModel):
    """带排序键的条目"""
    content: Union[Fragment, FragmentPair]
    order_key: int
    first_seen: int = 0

    # 是否由兜底规则得出（无已知位置）
    resolved: bool = True

    @property
    def is_pair(self) -> bool:
        return isinstance(self.content, FragmentPair)
