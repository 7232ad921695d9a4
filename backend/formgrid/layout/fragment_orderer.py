"""
片段排序 - 配对 List/Item 片段、计算排序键、稳定排序并生成显示区域

排序键规则（按优先级）：
1. 已知位置：显式 order_hint；独立片段取控件最小源行号；
   片段对取重复节标记的起始行，否则取属于该重复节的控件的最小源行号
2. 独立片段无已知位置：sequence_position * 1000，不超过终止键 - 1（告警 UnresolvedOrderKey）
   无法解析的坐标按兜底行 999 计入源行号，空坐标不参与
3. 片段对无任何位置：终止键 999999（排在最后，告警 UnresolvedOrderKey）

升序稳定排序，键相同时保持首次出现顺序（先独立片段，后片段对）。

测试要点：
- test_explicit_order_hints: [30, 10, 20] -> 10, 20, 30
- test_pair_top_level_members: 顶层 [item, list]
- test_pair_nested_members: 嵌套 [list, item]
- test_unmatched_half: 缺少对应片段时告警且不组合
- test_terminal_key: 无位置的片段对排在最后
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..config import LayoutConfig, NamingSpec, get_config, load_naming_rules
from ..diagnostics import NullSink
from ..interfaces import CompositionError, IDiagnosticSink, IFragmentOrderer
from ..models import (
    Area,
    AreaKind,
    Diagnostic,
    DiagnosticCode,
    Fragment,
    FragmentPair,
    FragmentRole,
    PositionedEntry,
)
from .position_codec import PositionCodec
from .section_names import normalize_section_name, section_from_fragment_id
from .visibility import VisibilityAssigner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairingResult:
    """配对结果"""
    standalones: list[Fragment] = field(default_factory=list)
    pairs: list[FragmentPair] = field(default_factory=list)
    # 缺少对应片段的 List/Item 半边（已告警）
    unmatched: list[Fragment] = field(default_factory=list)


class FragmentOrderer(IFragmentOrderer):
    """片段排序器"""

    def __init__(
        self,
        config: LayoutConfig | None = None,
        sink: IDiagnosticSink | None = None,
        rules: NamingSpec | None = None,
        visibility: VisibilityAssigner | None = None,
    ):
        self.config = config if config is not None else get_config()
        self.sink = sink if sink is not None else NullSink()
        self.rules = (
            rules if rules is not None else load_naming_rules(self.config.naming_rules_path)
        )
        self.visibility = visibility if visibility is not None else VisibilityAssigner()

    # =========================================================================
    # 配对
    # =========================================================================

    def pair_fragments(self, fragments: Sequence[Fragment]) -> PairingResult:
        standalones: list[Fragment] = []
        halves: dict[str, dict[FragmentRole, Fragment]] = {}
        orphans: list[Fragment] = []
        seen_ids: set[str] = set()

        for fragment in fragments:
            if fragment.id in seen_ids:
                self._emit_duplicate(fragment, f"片段ID重复: {fragment.id}，保留首次出现")
                continue
            seen_ids.add(fragment.id)

            if not fragment.is_pair_half:
                standalones.append(fragment)
                continue

            section = self.section_of(fragment)
            if not section:
                orphans.append(fragment)
                continue

            group = halves.setdefault(section, {})
            if fragment.role in group:
                self._emit_duplicate(
                    fragment,
                    f"重复节 {section} 的 {fragment.role.value} 片段重复: {fragment.id}，"
                    f"保留 {group[fragment.role].id}",
                )
                continue
            group[fragment.role] = fragment

        pairs: list[FragmentPair] = []
        unmatched: list[Fragment] = []
        for section, group in halves.items():
            list_fragment = group.get(FragmentRole.LIST)
            item_fragment = group.get(FragmentRole.ITEM)
            if list_fragment and item_fragment:
                pairs.append(
                    FragmentPair(
                        list_fragment=list_fragment,
                        item_fragment=item_fragment,
                        section_name=section,
                        is_top_level=not (
                            list_fragment.descriptor.parent_section_name
                            or item_fragment.descriptor.parent_section_name
                        ),
                    )
                )
            else:
                unmatched.extend(group.values())

        unmatched.extend(orphans)
        for fragment in unmatched:
            missing = "item" if fragment.role == FragmentRole.LIST else "list"
            self.sink.emit(
                Diagnostic(
                    code=DiagnosticCode.UNMATCHED_PAIR,
                    message=f"片段 {fragment.id} 缺少对应的 {missing} 片段，未组合",
                    fragment_id=fragment.id,
                    details={"section": self.section_of(fragment), "role": fragment.role.value},
                )
            )

        logger.info(
            f"片段配对完成: 独立 {len(standalones)}, 成对 {len(pairs)}, 未配对 {len(unmatched)}"
        )
        return PairingResult(standalones=standalones, pairs=pairs, unmatched=unmatched)

    def section_of(self, fragment: Fragment) -> str | None:
        """片段所属重复节（描述优先，否则由ID推导）"""
        name = fragment.descriptor.section_name
        if name:
            return normalize_section_name(name, self.rules)
        return section_from_fragment_id(fragment.id, rules=self.rules)

    # =========================================================================
    # 排序键
    # =========================================================================

    def build_section_rows(self, fragments: Sequence[Fragment]) -> dict[str, int]:
        """
        重复节 -> 源起始行

        优先取重复节标记的起始行；无标记时取宿主片段中属于该重复节的控件的最小行号。
        List/Item 片段自身的行号是片段内坐标，不参与。
        """
        marker_rows: dict[str, int] = {}
        control_rows: dict[str, int] = {}

        for fragment in fragments:
            for marker in fragment.markers:
                if not marker.is_repeating:
                    continue
                name = normalize_section_name(marker.name, self.rules)
                marker_rows[name] = min(marker.start_row, marker_rows.get(name, marker.start_row))

            if fragment.is_pair_half:
                continue
            for ctrl in fragment.controls:
                section = normalize_section_name(ctrl.repeating_section_name, self.rules)
                row = self._source_row(ctrl.grid_position)
                if section and row is not None:
                    control_rows[section] = min(row, control_rows.get(section, row))

        return {**control_rows, **marker_rows}

    def min_source_row(self, fragment: Fragment) -> int | None:
        rows = [self._source_row(c.grid_position) for c in fragment.controls]
        known = [r for r in rows if r is not None]
        return min(known) if known else None

    def resolve_order_key(
        self,
        content: Fragment | FragmentPair,
        *,
        sequence_position: int = 0,
        section_rows: dict[str, int] | None = None,
    ) -> tuple[int, bool]:
        """
        计算排序键

        Returns:
            (排序键, 是否为已知位置)
        """
        ordering = self.config.ordering

        if isinstance(content, FragmentPair):
            hints = [
                f.order_hint
                for f in (content.list_fragment, content.item_fragment)
                if f.order_hint is not None
            ]
            if hints:
                return min(hints), True
            row = (section_rows or {}).get(content.section_name)
            if row is not None:
                return row, True
            self._emit_unresolved(
                content.item_fragment.id,
                f"重复节 {content.section_name} 无已知位置，使用终止键 {ordering.terminal_order_key}",
                content.section_name,
            )
            return ordering.terminal_order_key, False

        if content.order_hint is not None:
            return content.order_hint, True
        row = self.min_source_row(content)
        if row is not None:
            return row, True

        seq = content.sequence_position or sequence_position
        # 不越过终止键，保证无位置的片段对排在最后
        key = min(seq * ordering.unknown_position_multiplier, ordering.terminal_order_key - 1)
        self._emit_unresolved(content.id, f"片段 {content.id} 无已知位置，按原始顺序 {seq} 排序", None)
        return key, False

    def order(
        self,
        standalones: Sequence[Fragment],
        pairs: Sequence[FragmentPair],
        *,
        section_rows: dict[str, int] | None = None,
    ) -> list[PositionedEntry]:
        for pair in pairs:
            self._check_pair(pair)
        if section_rows is None:
            section_rows = self.build_section_rows(
                [*standalones, *(f for p in pairs for f in (p.list_fragment, p.item_fragment))]
            )

        entries: list[PositionedEntry] = []
        for i, fragment in enumerate(standalones):
            key, resolved = self.resolve_order_key(
                fragment, sequence_position=i + 1, section_rows=section_rows
            )
            entries.append(
                PositionedEntry(content=fragment, order_key=key, first_seen=len(entries), resolved=resolved)
            )
        for pair in pairs:
            key, resolved = self.resolve_order_key(pair, section_rows=section_rows)
            entries.append(
                PositionedEntry(content=pair, order_key=key, first_seen=len(entries), resolved=resolved)
            )

        # sorted 为稳定排序，first_seen 仅显式表达平局规则
        return sorted(entries, key=lambda e: (e.order_key, e.first_seen))

    # =========================================================================
    # 区域
    # =========================================================================

    def build_areas(self, entries: Sequence[PositionedEntry]) -> list[Area]:
        areas: list[Area] = []
        for entry in entries:
            content = entry.content
            if isinstance(content, FragmentPair):
                directive = self.visibility.assign(content)
                areas.append(
                    Area(
                        kind=AreaKind.PAIR,
                        order_key=entry.order_key,
                        section_name=content.section_name,
                        is_top_level=content.is_top_level,
                        member_order=list(directive.member_order),
                        hidden_members=set(directive.hidden_members),
                    )
                )
            else:
                areas.append(
                    Area(kind=AreaKind.SINGLE, order_key=entry.order_key, fragment_ref=content.id)
                )
        return areas

    # =========================================================================
    # 内部方法
    # =========================================================================

    def _source_row(self, token: str | None) -> int | None:
        """源行号（空坐标返回 None；无法解析的坐标按兜底行排在最后）"""
        if not (token or "").strip():
            return None
        pos = PositionCodec.parse(token)
        return pos.row if pos else self.config.positions.sentinel_row

    @staticmethod
    def _check_pair(pair: FragmentPair) -> None:
        if pair.list_fragment.role != FragmentRole.LIST or pair.item_fragment.role != FragmentRole.ITEM:
            raise CompositionError(
                f"片段对 {pair.section_name} 角色错误: "
                f"{pair.list_fragment.role.value}/{pair.item_fragment.role.value}"
            )

    def _emit_duplicate(self, fragment: Fragment, message: str) -> None:
        self.sink.emit(
            Diagnostic(
                code=DiagnosticCode.DUPLICATE_FRAGMENT,
                message=message,
                fragment_id=fragment.id,
            )
        )

    def _emit_unresolved(self, fragment_id: str, message: str, section: str | None) -> None:
        self.sink.emit(
            Diagnostic(
                code=DiagnosticCode.UNRESOLVED_ORDER_KEY,
                message=message,
                fragment_id=fragment_id,
                details={"section": section} if section else {},
            )
        )
