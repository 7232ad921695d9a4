"""
表格装配 - 生成片段的稠密行列矩阵并放置控件

职责：
1. 构建 (1..row_count) x (0..column_count-1) 的格子，去除被合并的格
2. 按控件坐标放置到所属格（落在合并格内的控件挂到起始格并告警）
3. 行号超出表格范围的控件丢弃并告警（严格模式抛异常）
4. 放置过滤：与复选框同名的标签不放置；Item片段中的按钮仅放置自动生成的

测试要点：
- test_assemble_dense_matrix: 行优先输出，每行格数正确
- test_suppressed_slot_conflict: 合并格内控件归属起始格
- test_orphaned_control: 越界控件丢弃
- test_item_fragment_buttons: Item片段按钮过滤
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..config import LayoutConfig, get_config
from ..diagnostics import NullSink
from ..interfaces import IDiagnosticSink, ITableAssembler, OrphanedControlError
from ..models import Control, Diagnostic, DiagnosticCode, Table, TableCell, TableRow
from .position_codec import PositionCodec
from .span_resolver import SpanPlan

logger = logging.getLogger(__name__)


def column_count_for(
    controls: Sequence[Control], codec: PositionCodec, min_column_count: int = 4
) -> int:
    """列数 = max(最少列数, 1 + 最大列号)"""
    columns = [codec.decode(c.grid_position).column for c in controls]
    return max(min_column_count, 1 + max(columns, default=-1))


class TableAssembler(ITableAssembler):
    """表格装配器"""

    def __init__(
        self,
        config: LayoutConfig | None = None,
        sink: IDiagnosticSink | None = None,
        codec: PositionCodec | None = None,
    ):
        self.config = config if config is not None else get_config()
        self.sink = sink if sink is not None else NullSink()
        self.codec = codec if codec is not None else PositionCodec(self.config, self.sink)

    def column_count(self, controls: Sequence[Control]) -> int:
        return column_count_for(controls, self.codec, self.config.positions.min_column_count)

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
        rows: list[TableRow] = []
        cells: dict[tuple[int, int], TableCell] = {}

        for r in range(1, row_count + 1):
            row = TableRow(row=r)
            for col in range(column_count):
                if plan.is_suppressed(r, col):
                    continue
                cell = TableCell(column=col, col_span=plan.col_span(r, col))
                cells[(r, col)] = cell
                row.cells.append(cell)
            rows.append(row)

        skipped_labels = self._checkbox_names(controls)
        for ctrl in controls:
            if self._should_skip(ctrl, skipped_labels, is_item_fragment):
                logger.debug(f"[{fragment_id}] 跳过控件: {ctrl.id} ({ctrl.type})")
                continue

            pos = self.codec.decode(
                ctrl.grid_position, fragment_id=fragment_id, control_id=ctrl.id
            )
            if not (1 <= pos.row <= row_count and pos.column < column_count):
                self._orphan(ctrl, pos.row, pos.column, row_count, column_count, fragment_id)
                continue

            owner = plan.owner_of(pos.row, pos.column)
            if owner != (pos.row, pos.column):
                self.sink.emit(
                    Diagnostic(
                        code=DiagnosticCode.SPAN_CONFLICT,
                        message=(
                            f"控件 {ctrl.name or ctrl.id} 位于被合并的格 "
                            f"{self.codec.encode(pos.row, pos.column)}，"
                            f"归入 {self.codec.encode(*owner)}"
                        ),
                        fragment_id=fragment_id,
                        control_id=ctrl.id,
                        details={"slot": [pos.row, pos.column], "owner": list(owner)},
                    )
                )
            cells[owner].control_refs.append(ctrl.id)

        return Table(
            fragment_id=fragment_id,
            column_count=column_count,
            row_count=row_count,
            rows=rows,
        )

    def _checkbox_names(self, controls: Sequence[Control]) -> set[str]:
        """与复选框同名的标签不单独放置"""
        if not self.config.placement.skip_checkbox_labels:
            return set()
        types = {t.lower() for t in self.config.placement.checkbox_types}
        return {c.name_key for c in controls if c.type_key in types and c.name_key}

    def _should_skip(
        self, ctrl: Control, checkbox_names: set[str], is_item_fragment: bool
    ) -> bool:
        if self.config.is_label(ctrl.type) and ctrl.name_key in checkbox_names:
            return True

        placement = self.config.placement
        if is_item_fragment and placement.skip_item_buttons:
            button_types = {t.lower() for t in placement.button_types}
            if ctrl.type_key in button_types and not ctrl.is_auto_generated:
                return True
        return False

    def _orphan(
        self,
        ctrl: Control,
        row: int,
        column: int,
        row_count: int,
        column_count: int,
        fragment_id: str | None,
    ) -> None:
        message = (
            f"控件 {ctrl.name or ctrl.id} 的位置 {self.codec.encode(row, column)} "
            f"超出表格范围 {row_count}x{column_count}，已丢弃"
        )
        if self.config.validation.strict_orphans:
            raise OrphanedControlError(message)

        self.sink.emit(
            Diagnostic(
                code=DiagnosticCode.ORPHANED_CONTROL,
                message=message,
                fragment_id=fragment_id,
                control_id=ctrl.id,
                details={"row": row, "column": column},
            )
        )
