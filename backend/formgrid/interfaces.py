"""
模块接口契约 - 定义各模块的抽象接口

设计原则：
1. 模块间通过接口通信，不直接依赖具体实现
2. 每个接口定义清晰的输入输出类型
3. 查找表（行映射/列索引等）每次调用内构建并显式传递，不使用全局注册表
4. 诊断事件通过注入的 IDiagnosticSink 输出，便于单元测试断言

使用方式：
    from formgrid.interfaces import ISpanResolver

    class MySpanResolver(ISpanResolver):
        def resolve(self, controls, column_count, *, fragment_id=None) -> SpanPlan:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .layout.row_compactor import CompactionResult, TitleExtraction
    from .layout.span_resolver import SpanPlan
    from .layout.fragment_orderer import PairingResult
    from .models import (
        Area,
        Control,
        Diagnostic,
        Fragment,
        FragmentPair,
        GridPosition,
        PositionedEntry,
        SectionMarker,
        Table,
        VisibilityDirective,
    )


# ============================================================================
# 诊断输出
# ============================================================================

class IDiagnosticSink(Protocol):
    """诊断事件接收协议"""

    def emit(self, diagnostic: Diagnostic) -> None:
        """接收一条诊断事件（不得抛出异常）"""
        ...


# ============================================================================
# 表格布局模块接口
# ============================================================================

class IPositionCodec(ABC):
    """坐标编解码接口 - 坐标串 <-> (行, 列)"""

    @abstractmethod
    def decode(
        self,
        token: str | None,
        *,
        fragment_id: str | None = None,
        control_id: str | None = None,
    ) -> GridPosition:
        """
        解析坐标串

        Args:
            token: 坐标串，如 "3B"
            fragment_id / control_id: 诊断上下文

        Returns:
            网格坐标；无法解析时行号为兜底行（排在最后）
        """
        ...

    @abstractmethod
    def encode(self, row: int, column: int) -> str:
        """编码为规范坐标串"""
        ...


class IRowCompactor(ABC):
    """行压缩接口 - 去除空行，生成连续行号"""

    @abstractmethod
    def compact(
        self,
        controls: Sequence[Control],
        markers: Sequence[SectionMarker] = (),
        *,
        fragment_id: str | None = None,
    ) -> CompactionResult:
        """
        压缩行号

        Returns:
            新控件列表、新分区标记列表、行映射（原行号 -> 新行号）
        """
        ...

    @abstractmethod
    def extract_title(
        self,
        controls: Sequence[Control],
        markers: Sequence[SectionMarker] = (),
        *,
        fragment_id: str | None = None,
    ) -> TitleExtraction:
        """
        提取第1行标题标签（仅在 compact 之后执行一次）

        Returns:
            标题文本（可能为None）及平移后的控件/分区标记
        """
        ...


class ISpanResolver(ABC):
    """跨列解析接口 - 计算宽控件占用的连续列数"""

    @abstractmethod
    def resolve(
        self,
        controls: Sequence[Control],
        column_count: int,
        *,
        fragment_id: str | None = None,
    ) -> SpanPlan:
        """计算跨列与被合并的列"""
        ...


class ITableAssembler(ABC):
    """表格装配接口 - 生成稠密行列矩阵"""

    @abstractmethod
    def assemble(
        self,
        controls: Sequence[Control],
        plan: SpanPlan,
        column_count: int,
        row_count: int,
        *,
        fragment_id: str | None = None,
        is_item_fragment: bool = False,
    ) -> Table:
        """按行优先顺序输出表格描述"""
        ...


# ============================================================================
# 片段组合模块接口
# ============================================================================

class IFragmentOrderer(ABC):
    """片段排序接口 - 配对、计算排序键、稳定排序"""

    @abstractmethod
    def pair_fragments(self, fragments: Sequence[Fragment]) -> PairingResult:
        """将 List/Item 片段按重复节配对"""
        ...

    @abstractmethod
    def order(
        self,
        standalones: Sequence[Fragment],
        pairs: Sequence[FragmentPair],
        *,
        section_rows: dict[str, int] | None = None,
    ) -> list[PositionedEntry]:
        """计算排序键并升序稳定排序"""
        ...

    @abstractmethod
    def build_areas(self, entries: Sequence[PositionedEntry]) -> list[Area]:
        """将排序后的条目转换为显示区域"""
        ...


class IVisibilityAssigner(ABC):
    """可见性指令接口 - 由顶层/嵌套分类推导默认隐藏成员"""

    @abstractmethod
    def assign(self, pair: FragmentPair) -> VisibilityDirective:
        """返回成员顺序与默认隐藏集合"""
        ...


# ============================================================================
# 异常定义
# ============================================================================

class FormGridError(Exception):
    """基础异常"""
    pass


class ConfigError(FormGridError):
    """配置错误"""
    pass


class LayoutValidationError(FormGridError):
    """布局校验错误（严格模式）"""
    pass


class MalformedPositionError(LayoutValidationError):
    """坐标串无法解析"""
    pass


class OrphanedControlError(LayoutValidationError):
    """控件行号不在表格范围内"""
    pass


class CompositionError(FormGridError):
    """片段组合错误"""
    pass
