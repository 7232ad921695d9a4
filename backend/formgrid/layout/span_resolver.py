"""
跨列解析 - 计算宽控件（默认 richtext）向右占用的连续列数

规则：
    对位于 (row, col) 的宽控件，从 col+1 向右扫描同一行，遇到第一个"阻断列"停止：
    - 该列有非标签控件；或
    - 该列有独立标签：名称与宽控件不同，且本行更右侧存在同名控件（新字段的标签）
    未遇到阻断列时扫描到 column_count 为止。
    col_span = max(1, 阻断列 - col)，col+1 .. col+col_span-1 被合并（suppressed）。

名称比较不区分大小写。

测试要点：
- test_richtext_with_same_named_label: 同名标签被合并（col_span=2）
- test_independent_label_blocks: 独立标签阻断
- test_span_bounds: col_span >= 1 且 col + col_span <= column_count
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..config import LayoutConfig, get_config
from ..diagnostics import NullSink
from ..interfaces import IDiagnosticSink, ISpanResolver
from ..models import Control
from .position_codec import PositionCodec

Slot = tuple[int, int]


@dataclass(frozen=True)
class SpanPlan:
    """跨列计划"""
    column_count: int
    # (row, col) -> col_span（仅记录宽控件起始格）
    spans: dict[Slot, int] = field(default_factory=dict)
    # 被合并的格 -> 所属起始格
    suppressed: dict[Slot, Slot] = field(default_factory=dict)

    def col_span(self, row: int, column: int) -> int:
        return self.spans.get((row, column), 1)

    def is_suppressed(self, row: int, column: int) -> bool:
        return (row, column) in self.suppressed

    def owner_of(self, row: int, column: int) -> Slot:
        """返回覆盖该格的起始格（未合并时为自身）"""
        return self.suppressed.get((row, column), (row, column))


def index_by_row(
    controls: Sequence[Control], codec: PositionCodec, fragment_id: str | None = None
) -> dict[int, dict[int, list[Control]]]:
    """按 行 -> 列 -> 控件列表 建立查找表"""
    index: dict[int, dict[int, list[Control]]] = defaultdict(lambda: defaultdict(list))
    for ctrl in controls:
        pos = codec.decode(ctrl.grid_position, fragment_id=fragment_id, control_id=ctrl.id)
        index[pos.row][pos.column].append(ctrl)
    return index


class SpanResolver(ISpanResolver):
    """跨列解析器"""

    def __init__(
        self,
        config: LayoutConfig | None = None,
        sink: IDiagnosticSink | None = None,
        codec: PositionCodec | None = None,
    ):
        self.config = config if config is not None else get_config()
        self.sink = sink if sink is not None else NullSink()
        self.codec = codec if codec is not None else PositionCodec(self.config, self.sink)

    def resolve(
        self,
        controls: Sequence[Control],
        column_count: int,
        *,
        fragment_id: str | None = None,
    ) -> SpanPlan:
        spans: dict[Slot, int] = {}
        suppressed: dict[Slot, Slot] = {}

        index = index_by_row(controls, self.codec, fragment_id)
        for row in sorted(index):
            columns = index[row]
            for col in sorted(columns):
                if (row, col) in suppressed:
                    # 已被左侧宽控件合并，不再开启新的跨列
                    continue
                wide = next((c for c in columns[col] if self.config.is_wide(c.type)), None)
                if wide is None:
                    continue

                blocking = self._find_blocking(wide, col, columns, column_count)
                span = max(1, min(blocking, column_count) - col)
                if span == 1:
                    continue
                spans[(row, col)] = span
                for merged in range(col + 1, col + span):
                    suppressed[(row, merged)] = (row, col)

        return SpanPlan(column_count=column_count, spans=spans, suppressed=suppressed)

    def _find_blocking(
        self,
        wide: Control,
        col: int,
        columns: dict[int, list[Control]],
        column_count: int,
    ) -> int:
        """返回第一个阻断列（无则返回 column_count）"""
        for check in range(col + 1, column_count):
            occupants = columns.get(check)
            if not occupants:
                continue
            if any(self._blocks(c, wide, check, columns) for c in occupants):
                return check
        return column_count

    def _blocks(
        self,
        ctrl: Control,
        wide: Control,
        check: int,
        columns: dict[int, list[Control]],
    ) -> bool:
        if not self.config.is_label(ctrl.type):
            return True

        name = ctrl.name_key
        if not name or name == wide.name_key:
            return False

        # 独立标签：本行更右侧存在同名控件
        return any(
            other.name_key == name
            for later, occupants in columns.items()
            if later > check
            for other in occupants
        )
