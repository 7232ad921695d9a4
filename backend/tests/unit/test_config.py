"""
配置加载单元测试

每个模块完成后必须运行：pytest tests/unit/test_config.py -v
"""

from pathlib import Path

import pytest

from formgrid.config import LayoutConfig, NamingLoader, NamingSpec, reload_config
from formgrid.interfaces import ConfigError

REPO_ROOT = Path(__file__).resolve().parents[3]


class TestLayoutConfig:
    """运行期配置测试"""

    def test_default_config(self, config: LayoutConfig):
        """测试默认配置"""
        assert config.positions.sentinel_row == 999
        assert config.positions.min_column_count == 4
        assert config.ordering.unknown_position_multiplier == 1000
        assert config.ordering.terminal_order_key == 999999
        assert config.composition.emit_unmatched_as_standalone is False
        assert config.is_wide("RichText")
        assert config.is_label("LABEL")

    def test_from_yaml(self):
        """测试加载仓库配置（{default: ...} 展平）"""
        config = LayoutConfig.from_yaml(REPO_ROOT / "config" / "layout.yaml")

        assert config.positions.sentinel_row == 999
        assert config.spans.wide_control_types == ["richtext"]
        assert config.placement.button_types == ["button"]
        assert config.naming_rules_path == (REPO_ROOT / "config" / "naming_rules.yaml").resolve()

    def test_from_yaml_missing(self, tmp_path):
        """测试文件不存在时使用默认值"""
        config = LayoutConfig.from_yaml(tmp_path / "missing.yaml")

        assert config.positions.min_column_count == 4

    def test_from_yaml_invalid(self, tmp_path):
        """测试YAML格式错误"""
        path = tmp_path / "bad.yaml"
        path.write_text("layout_options: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError):
            LayoutConfig.from_yaml(path)

    def test_from_yaml_overrides(self, tmp_path):
        """测试部分覆盖"""
        path = tmp_path / "layout.yaml"
        path.write_text(
            "layout_options:\n"
            "  positions:\n"
            "    min_column_count:\n"
            "      default: 6\n"
            "  validation:\n"
            "    strict_orphans: true\n",
            encoding="utf-8",
        )
        config = LayoutConfig.from_yaml(path)

        assert config.positions.min_column_count == 6
        assert config.positions.sentinel_row == 999
        assert config.validation.strict_orphans is True

    def test_env_override(self, monkeypatch):
        """测试环境变量覆盖（FORMGRID_ 前缀，__ 分隔嵌套字段）"""
        monkeypatch.setenv("FORMGRID_POSITIONS__SENTINEL_ROW", "500")

        assert LayoutConfig().positions.sentinel_row == 500

    def test_reload_config(self, tmp_path):
        """测试重新加载"""
        path = tmp_path / "layout.yaml"
        path.write_text("layout_options:\n  ordering:\n    terminal_order_key: 5\n", encoding="utf-8")

        try:
            assert reload_config(path).ordering.terminal_order_key == 5
        finally:
            reload_config(tmp_path / "missing.yaml")


class TestNamingLoader:
    """命名规则加载测试"""

    def test_load_rules(self, naming_rules: NamingSpec):
        """测试加载命名规则"""
        assert naming_rules.schema_version == "1.0"
        assert naming_rules.get_suffix("list") == "_List"
        assert naming_rules.get_suffix("unknown") == ""
        assert [a.prefix for a in naming_rules.get_aliases()] == ["TABLECTRL"]

    def test_missing_file(self, tmp_path):
        """测试文件不存在时返回内置默认值"""
        rules = NamingLoader.load(tmp_path / "none.yaml")

        assert rules == NamingSpec()

    def test_reload(self, tmp_path):
        """测试强制重新加载"""
        path = tmp_path / "rules.yaml"
        path.write_text("title_templates:\n  item: 'Open {name}'\n", encoding="utf-8")
        assert NamingLoader.load(path).format_title("item", "Items") == "Open Items"

        path.write_text("title_templates:\n  item: 'Show {name}'\n", encoding="utf-8")
        assert NamingLoader.reload(path).format_title("item", "Items") == "Show Items"
