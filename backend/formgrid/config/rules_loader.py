"""
命名规则加载器 - 读取 config/naming_rules.yaml

职责：
- 解析YAML并提供类型安全访问
- 提供重复节名称别名、片段后缀、默认标题模板
- 缓存加载结果（避免重复解析）

使用方式：
    rules = NamingLoader.load("config/naming_rules.yaml")
    suffix = rules.get_suffix("list")
    title = rules.format_title("item", "Expense Report")
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from ..interfaces import ConfigError

DEFAULT_RULES_PATH = Path("config/naming_rules.yaml")


class SectionAlias(BaseModel):
    """重复节名称前缀别名（如 TABLECTRL -> Table_CTRL）"""
    prefix: str
    replacement: str


class NamingSpec(BaseModel):
    """命名规则（naming_rules.yaml 的结构化表示）"""
    schema_version: str = "1.0"

    # 重复节名称别名
    section_aliases: list[SectionAlias] = Field(
        default_factory=lambda: [SectionAlias(prefix="TABLECTRL", replacement="Table_CTRL")]
    )

    # 片段名后缀
    suffixes: dict[str, str] = Field(
        default_factory=lambda: {"list": "_List", "item": "_Item", "part": "_Part"}
    )

    # 默认标题模板
    title_templates: dict[str, str] = Field(
        default_factory=lambda: {
            "standalone": "New {name}",
            "item": "View {name}",
            "list": "{name} List",
        }
    )

    # === 便捷访问方法 ===

    def get_suffix(self, role: str) -> str:
        """获取片段角色后缀"""
        return self.suffixes.get(role, "")

    def get_aliases(self) -> list[SectionAlias]:
        return list(self.section_aliases)

    def format_title(self, role: str, display_name: str) -> str:
        """按角色模板生成默认标题"""
        template = self.title_templates.get(role) or "{name}"
        return template.format(name=display_name)


class NamingLoader:
    """命名规则加载器（缓存）"""

    @staticmethod
    @lru_cache(maxsize=4)
    def load(rules_path: str | Path = DEFAULT_RULES_PATH) -> NamingSpec:
        """加载并缓存命名规则（文件不存在时返回内置默认值）"""
        path = Path(rules_path)
        if not path.exists():
            return NamingSpec()

        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"命名规则解析失败: {path}: {e}") from e

        return NamingSpec(**data)

    @classmethod
    def reload(cls, rules_path: str | Path = DEFAULT_RULES_PATH) -> NamingSpec:
        """强制重新加载（清除缓存）"""
        cls.load.cache_clear()
        return cls.load(rules_path)


# 便捷函数
def load_naming_rules(rules_path: str | Path = DEFAULT_RULES_PATH) -> NamingSpec:
    """加载命名规则"""
    return NamingLoader.load(rules_path)
