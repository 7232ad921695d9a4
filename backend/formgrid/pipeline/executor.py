"""
流水线执行器 - 编排各阶段执行

职责：
1. 单片段布局：坐标规范化 -> 行压缩 -> 标题提取 -> 跨列解析 -> 表格装配
2. 多片段组合：配对 -> 排序 -> 可见性指令
3. 汇总诊断事件，生成 FormLayoutResult
4. 阶段失败时记录阶段名并重新抛出

一次性无状态转换：同一输入重复执行结果一致，不修改调用方传入的数据。

测试要点：
- test_execute_full_pipeline: 完整流水线执行
- test_execute_idempotent: 重复执行结果一致
- test_stage_failure_handling: 阶段失败处理
- test_no_loss: 区域数 = 独立片段数 + 成功配对数
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..config import LayoutConfig, NamingSpec, get_config, load_naming_rules
from ..diagnostics import DiagnosticCollector
from ..interfaces import IDiagnosticSink
from ..layout import (
    FragmentOrderer,
    PositionCodec,
    RowCompactor,
    SpanResolver,
    TableAssembler,
    default_title,
)
from ..models import Area, FormLayoutResult, Fragment, FragmentLayout, FragmentRole
from .stages import COMPOSITION_STAGES, FRAGMENT_STAGES, PipelineStage, StageEnum

logger = logging.getLogger(__name__)


class PipelineExecutor:
    """流水线执行器"""

    def __init__(self, config: LayoutConfig | None = None, rules: NamingSpec | None = None):
        self.config = config if config is not None else get_config()
        self.rules = (
            rules if rules is not None else load_naming_rules(self.config.naming_rules_path)
        )

    def execute(
        self,
        fragments: Sequence[Fragment],
        *,
        emit_unmatched_as_standalone: bool | None = None,
    ) -> FormLayoutResult:
        """执行流水线（整表单）"""
        sink = DiagnosticCollector()
        logger.info(f"流水线开始: 片段数 {len(fragments)}")

        try:
            tables: dict[str, FragmentLayout] = {}
            for fragment in fragments:
                # 重复ID在配对阶段告警，这里保留首次出现
                if fragment.id in tables:
                    continue
                tables[fragment.id] = self.build_fragment(fragment, sink)

            areas, unmatched = self.compose(
                fragments, sink, emit_unmatched_as_standalone=emit_unmatched_as_standalone
            )
        except Exception:
            logger.exception(f"流水线执行失败: 片段数 {len(fragments)}")
            raise

        result = FormLayoutResult(
            tables=tables,
            areas=areas,
            unmatched=unmatched,
            diagnostics=list(sink.diagnostics),
        )
        logger.info(
            f"流水线完成: 表格 {len(tables)}, 区域 {len(areas)}, 告警 {len(result.diagnostics)}"
        )
        return result

    # =========================================================================
    # 单片段布局
    # =========================================================================

    def build_fragment(
        self, fragment: Fragment, sink: IDiagnosticSink | None = None
    ) -> FragmentLayout:
        """生成单个片段的表格描述"""
        sink = sink if sink is not None else DiagnosticCollector()
        codec = PositionCodec(self.config, sink)
        context: dict[str, Any] = {
            "fragment": fragment,
            "codec": codec,
            "compactor": RowCompactor(self.config, sink, codec),
            "resolver": SpanResolver(self.config, sink, codec),
            "assembler": TableAssembler(self.config, sink, codec),
            "controls": list(fragment.controls),
            "markers": list(fragment.markers),
            "row_map": {},
            "title": None,
        }

        for stage in FRAGMENT_STAGES:
            self._execute_stage(fragment.id, stage, context)

        return FragmentLayout(
            fragment_id=fragment.id,
            table=context["table"],
            title=context["title"],
            row_map=context["row_map"],
            controls=context["controls"],
            markers=context["markers"],
        )

    # =========================================================================
    # 多片段组合
    # =========================================================================

    def compose(
        self,
        fragments: Sequence[Fragment],
        sink: IDiagnosticSink | None = None,
        *,
        emit_unmatched_as_standalone: bool | None = None,
    ) -> tuple[list[Area], list[str]]:
        """
        组合片段为有序显示区域

        Returns:
            (区域列表, 未配对片段ID列表)
        """
        if emit_unmatched_as_standalone is None:
            emit_unmatched_as_standalone = self.config.composition.emit_unmatched_as_standalone

        context: dict[str, Any] = {
            "fragments": list(fragments),
            "orderer": FragmentOrderer(self.config, sink, self.rules),
            "emit_unmatched": emit_unmatched_as_standalone,
        }
        for stage in COMPOSITION_STAGES:
            self._execute_stage("compose", stage, context)

        return context["areas"], [f.id for f in context["pairing"].unmatched]

    # =========================================================================
    # 阶段分派
    # =========================================================================

    def _execute_stage(self, run_id: str, stage: PipelineStage, context: dict[str, Any]) -> None:
        """执行单个阶段"""
        logger.debug(f"[{run_id}] 开始阶段: {stage.name}")

        try:
            if stage.handler:
                stage.execute(context)

            elif stage.name == StageEnum.DECODE_POSITIONS.value:
                self._stage_decode(context)

            elif stage.name == StageEnum.COMPACT_ROWS.value:
                self._stage_compact(context)

            elif stage.name == StageEnum.EXTRACT_TITLE.value:
                self._stage_extract_title(context)

            elif stage.name == StageEnum.RESOLVE_SPANS.value:
                self._stage_resolve_spans(context)

            elif stage.name == StageEnum.ASSEMBLE_TABLE.value:
                self._stage_assemble(context)

            elif stage.name == StageEnum.PAIR_FRAGMENTS.value:
                self._stage_pair(context)

            elif stage.name == StageEnum.ORDER_ENTRIES.value:
                self._stage_order(context)

            elif stage.name == StageEnum.ASSIGN_VISIBILITY.value:
                self._stage_assign_visibility(context)

        except Exception as e:
            logger.error(f"[{run_id}] 阶段失败 {stage.name}: {e}")
            raise

        logger.debug(f"[{run_id}] 完成阶段: {stage.name}")

    def _stage_decode(self, context: dict[str, Any]) -> None:
        """坐标规范化（无法解析的坐标在此告警一次并改写为兜底行）"""
        codec: PositionCodec = context["codec"]
        fragment: Fragment = context["fragment"]

        controls = []
        for ctrl in context["controls"]:
            pos = codec.decode(ctrl.grid_position, fragment_id=fragment.id, control_id=ctrl.id)
            token = codec.encode(pos.row, pos.column)
            controls.append(ctrl if token == ctrl.grid_position else ctrl.with_position(token))
        context["controls"] = controls

    def _stage_compact(self, context: dict[str, Any]) -> None:
        """行压缩"""
        compactor: RowCompactor = context["compactor"]
        fragment: Fragment = context["fragment"]

        compacted = compactor.compact(
            context["controls"], context["markers"], fragment_id=fragment.id
        )
        context["controls"] = compacted.controls
        context["markers"] = compacted.markers
        context["row_map"] = compacted.row_map
        if not compacted.is_identity:
            logger.info(f"[{fragment.id}] 行压缩: {len(compacted.row_map)} 行")

    def _stage_extract_title(self, context: dict[str, Any]) -> None:
        """标题提取（无标题时按片段角色生成默认标题）"""
        compactor: RowCompactor = context["compactor"]
        fragment: Fragment = context["fragment"]

        extraction = compactor.extract_title(
            context["controls"], context["markers"], fragment_id=fragment.id
        )
        context["controls"] = extraction.controls
        context["markers"] = extraction.markers

        if extraction.title:
            logger.info(f"[{fragment.id}] 提取标题: {extraction.title}")
            context["title"] = extraction.title
        else:
            name = fragment.descriptor.section_name or fragment.id
            context["title"] = default_title(fragment.role, name, self.rules)

    def _stage_resolve_spans(self, context: dict[str, Any]) -> None:
        """跨列解析"""
        assembler: TableAssembler = context["assembler"]
        resolver: SpanResolver = context["resolver"]
        fragment: Fragment = context["fragment"]

        column_count = assembler.column_count(context["controls"])
        context["column_count"] = column_count
        context["span_plan"] = resolver.resolve(
            context["controls"], column_count, fragment_id=fragment.id
        )

    def _stage_assemble(self, context: dict[str, Any]) -> None:
        """表格装配"""
        assembler: TableAssembler = context["assembler"]
        codec: PositionCodec = context["codec"]
        fragment: Fragment = context["fragment"]

        controls = context["controls"]
        row_count = max((codec.decode(c.grid_position).row for c in controls), default=0)
        table = assembler.assemble(
            controls,
            context["span_plan"],
            context["column_count"],
            row_count,
            fragment_id=fragment.id,
            is_item_fragment=fragment.role == FragmentRole.ITEM,
        )
        context["table"] = table.model_copy(update={"title": context["title"]})

    def _stage_pair(self, context: dict[str, Any]) -> None:
        """List/Item 配对"""
        orderer: FragmentOrderer = context["orderer"]
        context["pairing"] = orderer.pair_fragments(context["fragments"])

    def _stage_order(self, context: dict[str, Any]) -> None:
        """计算排序键并排序"""
        orderer: FragmentOrderer = context["orderer"]
        pairing = context["pairing"]

        standalones = list(pairing.standalones)
        if context["emit_unmatched"]:
            standalones.extend(pairing.unmatched)

        section_rows = orderer.build_section_rows(context["fragments"])
        context["entries"] = orderer.order(
            standalones, pairing.pairs, section_rows=section_rows
        )

    def _stage_assign_visibility(self, context: dict[str, Any]) -> None:
        """生成显示区域与默认隐藏指令"""
        orderer: FragmentOrderer = context["orderer"]
        context["areas"] = orderer.build_areas(context["entries"])
        logger.info(f"组合完成: 区域 {len(context['areas'])}")
