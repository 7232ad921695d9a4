"""
流水线执行器单元测试

每个模块完成后必须运行：pytest tests/unit/test_executor.py -v
"""

import logging

import pytest

from formgrid.config import LayoutConfig, ValidationConfig
from formgrid.diagnostics import DiagnosticCollector
from formgrid.interfaces import MalformedPositionError
from formgrid.layout import FragmentOrderer, PositionCodec, RowCompactor, SpanResolver, TableAssembler
from formgrid.models import AreaKind, DiagnosticCode, FragmentRole
from formgrid.pipeline import COMPOSITION_STAGES, FRAGMENT_STAGES, PipelineExecutor, PipelineStage, StageEnum


class TestStages:
    """阶段定义测试"""

    def test_fragment_stage_order(self):
        """测试片段阶段顺序"""
        assert [s.name for s in FRAGMENT_STAGES] == [
            StageEnum.DECODE_POSITIONS.value,
            StageEnum.COMPACT_ROWS.value,
            StageEnum.EXTRACT_TITLE.value,
            StageEnum.RESOLVE_SPANS.value,
            StageEnum.ASSEMBLE_TABLE.value,
        ]
        assert [s.name for s in COMPOSITION_STAGES] == [
            StageEnum.PAIR_FRAGMENTS.value,
            StageEnum.ORDER_ENTRIES.value,
            StageEnum.ASSIGN_VISIBILITY.value,
        ]

    def test_stage_handler(self):
        """测试自定义处理函数"""
        stage = PipelineStage("CUSTOM", handler=lambda ctx: ctx.update(done=True))
        context = {}
        stage.execute(context)

        assert context == {"done": True}


class TestBuildFragment:
    """单片段布局测试"""

    def test_main_fragment(self, executor: PipelineExecutor, sample_form):
        """测试主片段：压缩、标题提取、富文本跨列"""
        layout = executor.build_fragment(sample_form[0])

        assert layout.title == "Expense Report"
        assert layout.table.title == "Expense Report"
        assert layout.row_map == {1: 1, 3: 2, 5: 3, 7: 4, 11: 5}
        assert layout.table.row_count == 4
        assert layout.table.column_count == 4

        notes_row = layout.table.rows[1]
        assert [(c.column, c.col_span) for c in notes_row.cells] == [(0, 1), (1, 3)]
        assert notes_row.cells[1].control_refs == ["rt_notes"]
        assert "title" not in layout.table.placed_control_ids()

        # 标记行随压缩与标题上移同步改写
        assert (layout.markers[0].start_row, layout.markers[0].end_row) == (3, 4)

    def test_item_fragment_default_title(self, executor: PipelineExecutor, sample_form):
        """测试无标题时使用默认标题，Item片段按钮过滤"""
        layout = executor.build_fragment(sample_form[2])

        assert layout.title == "View Items"
        assert layout.table.placed_control_ids() == ["i1", "i2"]

    def test_malformed_token_reported_once(self, executor: PipelineExecutor, make_fragment, make_control):
        """测试无法解析的坐标只告警一次并排在最后"""
        sink = DiagnosticCollector(log=False)
        fragment = make_fragment("F", controls=[
            make_control("bad", "textfield", "??"),
            make_control("ok", "textfield", "4B"),
        ])
        layout = executor.build_fragment(fragment, sink)

        assert sink.codes() == [DiagnosticCode.MALFORMED_POSITION_TOKEN]
        assert layout.table.cell_at(2, 0).control_refs == ["bad"]
        assert layout.table.cell_at(1, 1).control_refs == ["ok"]

    def test_strict_positions(self, naming_rules, make_fragment, make_control):
        """测试严格模式下阶段失败抛出异常"""
        config = LayoutConfig(validation=ValidationConfig(strict_positions=True))
        executor = PipelineExecutor(config, naming_rules)
        fragment = make_fragment("F", controls=[make_control("bad", "textfield", "x")])

        with pytest.raises(MalformedPositionError):
            executor.build_fragment(fragment)


class TestExecute:
    """整表单执行测试"""

    def test_execute_full_pipeline(self, executor: PipelineExecutor, sample_form):
        """测试完整流水线：主片段 -> Items(顶层) -> SubItems(嵌套)"""
        result = executor.execute(sample_form)

        assert set(result.tables) == {f.id for f in sample_form}
        assert [a.kind for a in result.areas] == [AreaKind.SINGLE, AreaKind.PAIR, AreaKind.PAIR]
        assert [a.order_key for a in result.areas] == [1, 7, 11]
        assert result.area_order() == [
            "Expense_Report",
            "Expense_Report_Items_Item",
            "Expense_Report_Items_List",
            "Expense_Report_SubItems_List",
            "Expense_Report_SubItems_Item",
        ]
        assert result.areas[1].hidden_members == {"Expense_Report_Items_List"}
        assert result.areas[2].hidden_members == {
            "Expense_Report_SubItems_List",
            "Expense_Report_SubItems_Item",
        }
        assert result.diagnostics == []
        assert not result.has_warnings

    def test_no_loss(self, executor: PipelineExecutor, sample_form):
        """测试区域数 = 独立片段数 + 成功配对数，片段ID一一对应"""
        result = executor.execute(sample_form)

        standalones = [f for f in sample_form if f.role == FragmentRole.STANDALONE]
        assert len(result.areas) == len(standalones) + 2
        assert sorted(result.area_order()) == sorted(f.id for f in sample_form)

    def test_execute_idempotent(self, executor: PipelineExecutor, sample_form):
        """测试重复执行结果一致且不修改输入"""
        first = executor.execute(sample_form)
        second = executor.execute(sample_form)

        assert first == second
        assert sample_form[0].controls[1].grid_position == "3A"

    def test_unmatched_half(self, executor: PipelineExecutor, sample_form):
        """测试未配对片段告警且不进入区域"""
        fragments = sample_form[:-1]
        result = executor.execute(fragments)

        assert result.unmatched == ["Expense_Report_SubItems_List"]
        assert len(result.areas) == 2
        assert "Expense_Report_SubItems_List" not in result.area_order()
        assert result.flags() == ["UnmatchedPair:Expense_Report_SubItems_List"]
        # 片段表格仍然生成
        assert "Expense_Report_SubItems_List" in result.tables

    def test_unmatched_as_standalone(self, executor: PipelineExecutor, sample_form):
        """测试调用方选择将未配对片段作为独立区域输出"""
        result = executor.execute(sample_form[:-1], emit_unmatched_as_standalone=True)

        assert len(result.areas) == 3
        assert "Expense_Report_SubItems_List" in result.area_order()
        assert result.unmatched == ["Expense_Report_SubItems_List"]

    def test_stage_failure_handling(self, executor: PipelineExecutor, sample_form, monkeypatch, caplog):
        """测试阶段失败时记录阶段名并重新抛出"""

        def boom(context):
            raise RuntimeError("compaction failed")

        monkeypatch.setattr(executor, "_stage_compact", boom)

        with caplog.at_level(logging.ERROR, logger="formgrid"):
            with pytest.raises(RuntimeError):
                executor.execute(sample_form)

        assert "COMPACT_ROWS" in caplog.text

    def test_diagnostic_stream(self, executor: PipelineExecutor, make_fragment, make_control):
        """测试整表单诊断汇总：坏坐标、合并格冲突、未配对、无位置片段"""
        fragments = [
            make_fragment("Main", controls=[
                make_control("a", "textfield", "1A", name="Amount"),
                make_control("rt", "richtext", "2A", name="Notes"),
                make_control("lbl", "label", "2B", name="Notes"),
                make_control("bad", "textfield", "??"),
            ]),
            make_fragment("Empty"),
            make_fragment("Items_List", FragmentRole.LIST, section_name="Items"),
        ]
        result = executor.execute(fragments)

        assert [d.code for d in result.diagnostics] == [
            DiagnosticCode.MALFORMED_POSITION_TOKEN,
            DiagnosticCode.SPAN_CONFLICT,
            DiagnosticCode.UNMATCHED_PAIR,
            DiagnosticCode.UNRESOLVED_ORDER_KEY,
        ]
        assert result.has_warnings
        assert result.unmatched == ["Items_List"]
        assert result.flags() == [
            "MalformedPositionToken:bad",
            "SpanConflict:lbl",
            "UnmatchedPair:Items_List",
            "UnresolvedOrderKey:Empty",
        ]
        # 坏坐标按兜底行计，不影响主片段的已知位置
        assert [(a.fragment_ref, a.order_key) for a in result.areas] == [("Main", 1), ("Empty", 2000)]

    def test_logger_level_untouched(self, naming_rules):
        """测试创建执行器不修改日志级别"""
        package_logger = logging.getLogger("formgrid")
        before = package_logger.level

        PipelineExecutor(LayoutConfig(), naming_rules)

        assert package_logger.level == before


class TestSinkInjection:
    """诊断收集器注入测试"""

    @pytest.mark.parametrize(
        "component",
        [PositionCodec, RowCompactor, SpanResolver, TableAssembler, FragmentOrderer],
    )
    def test_empty_collector_kept(self, config, naming_rules, component):
        """测试注入的空收集器原样保留"""
        sink = DiagnosticCollector(log=False)
        if component is FragmentOrderer:
            instance = component(config, sink, naming_rules)
        else:
            instance = component(config, sink)

        assert len(sink) == 0
        assert instance.sink is sink

    def test_codec_reports_to_injected_sink(self, config):
        """测试坏坐标写入注入的收集器"""
        sink = DiagnosticCollector(log=False)
        PositionCodec(config, sink).decode("??", control_id="c1")

        assert sink.codes() == [DiagnosticCode.MALFORMED_POSITION_TOKEN]
