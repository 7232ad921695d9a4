"""
布局算法层 - 行压缩、跨列解析、表格装配与片段组合

模块：
- position_codec: 坐标串编解码
- row_compactor: 行压缩与标题提取
- span_resolver: 宽控件跨列解析
- table_assembler: 稠密表格装配
- fragment_orderer: 片段配对、排序与区域生成
- visibility: 组合区域默认可见性
- section_names: 重复节命名规则
"""

from .fragment_orderer import FragmentOrderer, PairingResult
from .position_codec import PositionCodec, column_letter, column_number
from .row_compactor import CompactionResult, RowCompactor, TitleExtraction
from .section_names import (
    default_title,
    display_name,
    normalize_section_name,
    section_from_fragment_id,
)
from .span_resolver import SpanPlan, SpanResolver, index_by_row
from .table_assembler import TableAssembler, column_count_for
from .visibility import VisibilityAssigner

__all__ = [
    "PositionCodec",
    "column_letter",
    "column_number",
    "RowCompactor",
    "CompactionResult",
    "TitleExtraction",
    "SpanResolver",
    "SpanPlan",
    "index_by_row",
    "TableAssembler",
    "column_count_for",
    "FragmentOrderer",
    "PairingResult",
    "VisibilityAssigner",
    "normalize_section_name",
    "section_from_fragment_id",
    "default_title",
    "display_name",
]
