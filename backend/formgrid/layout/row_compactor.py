"""
行压缩 - 去除空行并提取标题行

职责：
1. compact: 将出现过的行号升序映射为 1..n（去除空行）
2. 同步改写分区标记与控件 section_info 的起止行
3. extract_title: 第1行唯一标签作为标题，其余行整体上移1行
4. normalize: compact 后执行且仅执行一次 extract_title

依赖：
- PositionCodec: 坐标串解析/编码

测试要点：
- test_compact_removes_gaps: {1,3,5} -> {1,2,3}
- test_compact_idempotent: compact(compact(x)) == compact(x)
- test_compact_identity_noop: 恒等映射原样返回
- test_unmapped_marker_row: 映射外的标记行保留并告警
- test_extract_title: 标题提取与整体上移
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from ..config import LayoutConfig, get_config
from ..diagnostics import NullSink
from ..interfaces import IDiagnosticSink, IRowCompactor
from ..models import Control, Diagnostic, DiagnosticCode, GridPosition, SectionMarker
from .position_codec import PositionCodec


@dataclass(frozen=True)
class CompactionResult:
    """压缩结果"""
    controls: list[Control]
    markers: list[SectionMarker]
    row_map: dict[int, int] = field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return max(self.row_map.values(), default=0)

    @property
    def is_identity(self) -> bool:
        return all(k == v for k, v in self.row_map.items())


@dataclass(frozen=True)
class TitleExtraction:
    """标题提取结果"""
    title: str | None
    controls: list[Control]
    markers: list[SectionMarker]
    title_control_id: str | None = None


class RowCompactor(IRowCompactor):
    """行压缩器"""

    def __init__(
        self,
        config: LayoutConfig | None = None,
        sink: IDiagnosticSink | None = None,
        codec: PositionCodec | None = None,
    ):
        self.config = config if config is not None else get_config()
        self.sink = sink if sink is not None else NullSink()
        self.codec = codec if codec is not None else PositionCodec(self.config, self.sink)

    def compact(
        self,
        controls: Sequence[Control],
        markers: Sequence[SectionMarker] = (),
        *,
        fragment_id: str | None = None,
    ) -> CompactionResult:
        if not controls:
            return CompactionResult(controls=list(controls), markers=list(markers))

        positions = self._decode_all(controls, fragment_id)
        rows = sorted({p.row for p in positions})
        row_map = {old: new for new, old in enumerate(rows, start=1)}

        self._report_unmapped(controls, markers, row_map, fragment_id)

        if all(k == v for k, v in row_map.items()):
            return CompactionResult(
                controls=list(controls), markers=list(markers), row_map=row_map
            )

        new_controls = [
            ctrl.with_position(self.codec.encode(row_map[pos.row], pos.column), row_map)
            for ctrl, pos in zip(controls, positions)
        ]
        new_markers = [m.remap(row_map) for m in markers]
        return CompactionResult(controls=new_controls, markers=new_markers, row_map=row_map)

    def extract_title(
        self,
        controls: Sequence[Control],
        markers: Sequence[SectionMarker] = (),
        *,
        fragment_id: str | None = None,
    ) -> TitleExtraction:
        positions = self._decode_all(controls, fragment_id)
        first_row = [c for c, p in zip(controls, positions) if p.row == 1]

        title_ctrl = first_row[0] if len(first_row) == 1 else None
        title = (title_ctrl.label or "").strip() if title_ctrl else ""
        has_body = any(
            p.row >= 2 and not self.config.is_label(c.type)
            for c, p in zip(controls, positions)
        )
        if not (title_ctrl and self.config.is_label(title_ctrl.type) and title and has_body):
            return TitleExtraction(title=None, controls=list(controls), markers=list(markers))

        # 第2行及以后整体上移1行
        shift = self._shift_map(positions, controls, markers)
        new_controls = [
            ctrl.with_position(self.codec.encode(pos.shifted(-1).row, pos.column), shift)
            for ctrl, pos in zip(controls, positions)
            if ctrl is not title_ctrl
        ]
        new_markers = [m.remap(shift) for m in markers]
        return TitleExtraction(
            title=title,
            controls=new_controls,
            markers=new_markers,
            title_control_id=title_ctrl.id,
        )

    def normalize(
        self,
        controls: Sequence[Control],
        markers: Sequence[SectionMarker] = (),
        *,
        fragment_id: str | None = None,
    ) -> tuple[CompactionResult, TitleExtraction]:
        """compact 后执行一次 extract_title"""
        compacted = self.compact(controls, markers, fragment_id=fragment_id)
        extraction = self.extract_title(
            compacted.controls, compacted.markers, fragment_id=fragment_id
        )
        return compacted, extraction

    def _decode_all(
        self, controls: Sequence[Control], fragment_id: str | None
    ) -> list[GridPosition]:
        return [
            self.codec.decode(c.grid_position, fragment_id=fragment_id, control_id=c.id)
            for c in controls
        ]

    @staticmethod
    def _shift_map(
        positions: Sequence[GridPosition],
        controls: Sequence[Control],
        markers: Sequence[SectionMarker],
    ) -> dict[int, int]:
        rows = {p.row for p in positions}
        for m in markers:
            rows.update((m.start_row, m.end_row))
        for c in controls:
            if c.section_info is not None:
                rows.update(r for r in (c.section_info.start_row, c.section_info.end_row) if r)
        return {r: r - 1 for r in rows if r >= 2}

    def _report_unmapped(
        self,
        controls: Sequence[Control],
        markers: Sequence[SectionMarker],
        row_map: dict[int, int],
        fragment_id: str | None,
    ) -> None:
        """映射外的分区行保留原值并告警（同一分区同一行只报一次）"""
        reported: set[tuple[str, int]] = set()

        for m in markers:
            for row in m.unmapped_rows(row_map):
                if (m.name, row) in reported:
                    continue
                reported.add((m.name, row))
                self._emit_unmapped(m.name, row, fragment_id, None)

        for c in controls:
            if c.section_info is None:
                continue
            name = c.section_info.name or ""
            for row in c.section_info.unmapped_rows(row_map):
                if (name, row) in reported:
                    continue
                reported.add((name, row))
                self._emit_unmapped(name, row, fragment_id, c.id)

    def _emit_unmapped(
        self, section: str, row: int, fragment_id: str | None, control_id: str | None
    ) -> None:
        self.sink.emit(
            Diagnostic(
                code=DiagnosticCode.UNMAPPED_MARKER_ROW,
                message=f"分区 {section} 的行 {row} 不在行映射中，保持原值",
                fragment_id=fragment_id,
                control_id=control_id,
                details={"section": section, "row": row},
            )
        )
