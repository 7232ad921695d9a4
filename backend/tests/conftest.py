"""
pytest 配置与公共 fixtures

使用方式：
    def test_something(make_control, compactor):
        result = compactor.compact([make_control("c1", "textfield", "3A")])
        assert result.row_map == {3: 1}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from formgrid.config import LayoutConfig, NamingLoader, NamingSpec
from formgrid.diagnostics import DiagnosticCollector
from formgrid.layout import (
    FragmentOrderer,
    PositionCodec,
    RowCompactor,
    SpanResolver,
    TableAssembler,
    VisibilityAssigner,
)
from formgrid.models import (
    Control,
    Fragment,
    FragmentDescriptor,
    FragmentRole,
    RepeatingSectionInfo,
    SectionKind,
    SectionMarker,
)
from formgrid.pipeline import PipelineExecutor

REPO_ROOT = Path(__file__).resolve().parents[2]


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def config() -> LayoutConfig:
    """默认布局配置"""
    return LayoutConfig()


@pytest.fixture(scope="session")
def naming_rules() -> NamingSpec:
    """加载命名规则（会话级别缓存）"""
    # 尝试加载仓库内规则文件，不存在则使用内置默认值
    rules_path = REPO_ROOT / "config" / "naming_rules.yaml"
    if rules_path.exists():
        return NamingLoader.load(rules_path)
    return NamingSpec()


# ============================================================================
# 组件 Fixtures
# ============================================================================

@pytest.fixture
def sink() -> DiagnosticCollector:
    """诊断收集器（不写日志）"""
    return DiagnosticCollector(log=False)


@pytest.fixture
def codec(config: LayoutConfig, sink: DiagnosticCollector) -> PositionCodec:
    return PositionCodec(config, sink)


@pytest.fixture
def compactor(config: LayoutConfig, sink: DiagnosticCollector) -> RowCompactor:
    return RowCompactor(config, sink)


@pytest.fixture
def resolver(config: LayoutConfig, sink: DiagnosticCollector) -> SpanResolver:
    return SpanResolver(config, sink)


@pytest.fixture
def assembler(config: LayoutConfig, sink: DiagnosticCollector) -> TableAssembler:
    return TableAssembler(config, sink)


@pytest.fixture
def orderer(
    config: LayoutConfig, sink: DiagnosticCollector, naming_rules: NamingSpec
) -> FragmentOrderer:
    return FragmentOrderer(config, sink, naming_rules, VisibilityAssigner())


@pytest.fixture
def executor(config: LayoutConfig, naming_rules: NamingSpec) -> PipelineExecutor:
    return PipelineExecutor(config, naming_rules)


# ============================================================================
# 数据模型 Fixtures
# ============================================================================

@pytest.fixture
def make_control() -> Callable[..., Control]:
    """控件工厂"""

    def _make(
        ctrl_id: str,
        ctrl_type: str,
        position: str,
        name: str = "",
        label: str | None = None,
        section: str | None = None,
        parent_section: str | None = None,
        **extra: Any,
    ) -> Control:
        repeating = None
        if section:
            repeating = RepeatingSectionInfo(
                is_in_repeating_section=True,
                repeating_section_name=section,
                parent_repeating_section_name=parent_section,
            )
        return Control(
            id=ctrl_id,
            type=ctrl_type,
            name=name,
            label=label,
            grid_position=position,
            repeating_section_info=repeating,
            **extra,
        )

    return _make


@pytest.fixture
def make_fragment() -> Callable[..., Fragment]:
    """片段工厂"""

    def _make(
        fragment_id: str,
        role: FragmentRole = FragmentRole.STANDALONE,
        controls: list[Control] | None = None,
        markers: list[SectionMarker] | None = None,
        section_name: str | None = None,
        parent_section_name: str | None = None,
        **extra: Any,
    ) -> Fragment:
        return Fragment(
            descriptor=FragmentDescriptor(
                id=fragment_id,
                role=role,
                section_name=section_name,
                parent_section_name=parent_section_name,
            ),
            controls=controls or [],
            markers=markers or [],
            **extra,
        )

    return _make


@pytest.fixture
def sample_controls(make_control) -> list[Control]:
    """示例控件：标题行 + 间隔行（1, 3, 5）"""
    return [
        make_control("title", "label", "1A", name="FormTitle", label="Expense Report"),
        make_control("lbl_name", "label", "3A", name="EmployeeName", label="Name"),
        make_control("txt_name", "textfield", "3B", name="EmployeeName"),
        make_control("lbl_notes", "label", "5A", name="Notes", label="Notes"),
        make_control("rt_notes", "richtext", "5B", name="Notes"),
    ]


@pytest.fixture
def repeating_marker() -> SectionMarker:
    """示例重复节标记"""
    return SectionMarker(name="Items", start_row=7, end_row=11, kind=SectionKind.REPEATING)


@pytest.fixture
def sample_form(make_control, make_fragment, sample_controls, repeating_marker) -> list[Fragment]:
    """示例表单：主片段 + Items(顶层) + SubItems(嵌套)"""
    main_controls = [
        *sample_controls,
        make_control("txt_desc", "textfield", "7A", name="Description", section="Items"),
        make_control("txt_sub", "textfield", "11A", name="SubNote", section="SubItems",
                     parent_section="Items"),
    ]
    return [
        make_fragment("Expense_Report", controls=main_controls, markers=[repeating_marker]),
        make_fragment(
            "Expense_Report_Items_List", FragmentRole.LIST, section_name="Items",
            controls=[make_control("l1", "textfield", "1A", name="Description")],
        ),
        make_fragment(
            "Expense_Report_Items_Item", FragmentRole.ITEM, section_name="Items",
            controls=[
                make_control("i1", "label", "1A", name="Description", label="Description"),
                make_control("i2", "textfield", "1B", name="Description"),
                make_control("btn_save", "button", "2A", name="Save"),
            ],
        ),
        make_fragment(
            "Expense_Report_SubItems_List", FragmentRole.LIST, section_name="SubItems",
            parent_section_name="Items",
            controls=[make_control("sl1", "textfield", "1A", name="SubNote")],
        ),
        make_fragment(
            "Expense_Report_SubItems_Item", FragmentRole.ITEM, section_name="SubItems",
            parent_section_name="Items",
            controls=[make_control("si1", "textfield", "1A", name="SubNote")],
        ),
    ]
