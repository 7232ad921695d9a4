"""
区域模型 - 组合布局中的最终显示单元

- single: 独立片段
- pair: 重复节组合（List + Item），附带默认隐藏指令
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class AreaKind(str, Enum):
    """区域类型"""
    SINGLE = "single"
    PAIR = "pair"


class VisibilityDirective(BaseModel):
    """默认可见性指令"""
    member_order: list[str]
    hidden_members: set[str] = Field(default_factory=set)

    model_config = {"frozen": True}


class Area(BaseModel):
    """组合布局区域"""
    kind: AreaKind
    order_key: int

    # single
    fragment_ref: str | None = None

    # pair
    section_name: str | None = None
    is_top_level: bool | None = None
    member_order: list[str] = Field(default_factory=list)
    hidden_members: set[str] = Field(default_factory=set)

    @property
    def fragment_refs(self) -> list[str]:
        """区域包含的全部片段ID（按成员顺序）"""
        if self.kind == AreaKind.SINGLE:
            return [self.fragment_ref] if self.fragment_ref else []
        return list(self.member_order)

    @property
    def visible_members(self) -> list[str]:
        return [m for m in self.fragment_refs if m not in self.hidden_members]
