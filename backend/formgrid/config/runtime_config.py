"""
运行期配置 - 读取 config/layout.yaml

职责：
- 加载坐标/跨列/排序/放置/校验等布局参数
- 提供环境变量覆盖机制（FORMGRID_ 前缀）
- 类型安全的配置访问
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from ..interfaces import ConfigError

DEFAULT_CONFIG_PATH = Path("config/layout.yaml")


class PositionConfig(BaseModel):
    """坐标配置"""

    sentinel_row: int = 999
    min_column_count: int = 4


class SpanConfig(BaseModel):
    """跨列配置"""

    wide_control_types: list[str] = Field(default_factory=lambda: ["richtext"])
    label_types: list[str] = Field(default_factory=lambda: ["label"])


class OrderingConfig(BaseModel):
    """片段排序配置"""

    unknown_position_multiplier: int = 1000
    terminal_order_key: int = 999999


class PlacementConfig(BaseModel):
    """控件放置配置"""

    skip_checkbox_labels: bool = True
    checkbox_types: list[str] = Field(default_factory=lambda: ["checkbox"])
    skip_item_buttons: bool = True
    button_types: list[str] = Field(default_factory=lambda: ["button"])


class ValidationConfig(BaseModel):
    """校验配置（严格模式下告警改为异常）"""

    strict_positions: bool = False
    strict_orphans: bool = False


class CompositionConfig(BaseModel):
    """组合配置"""

    emit_unmatched_as_standalone: bool = False


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"


class LayoutConfig(BaseSettings):
    """布局运行期配置（支持环境变量覆盖）"""

    naming_rules_path: Path = Path("config/naming_rules.yaml")

    # 各子配置
    positions: PositionConfig = Field(default_factory=PositionConfig)
    spans: SpanConfig = Field(default_factory=SpanConfig)
    ordering: OrderingConfig = Field(default_factory=OrderingConfig)
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    composition: CompositionConfig = Field(default_factory=CompositionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "FORMGRID_",
        "env_nested_delimiter": "__",
    }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> LayoutConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"配置文件解析失败: {path}: {e}") from e

        opts = data.get("layout_options", {})

        config = cls(
            positions=PositionConfig(**cls._extract(opts, "positions")),
            spans=SpanConfig(**cls._extract(opts, "spans")),
            ordering=OrderingConfig(**cls._extract(opts, "ordering")),
            placement=PlacementConfig(**cls._extract(opts, "placement")),
            validation=ValidationConfig(**cls._extract(opts, "validation")),
            composition=CompositionConfig(**cls._extract(opts, "composition")),
            logging=LoggingConfig(**cls._extract(opts, "logging")),
        )

        naming = data.get("naming_rules_path")
        if naming:
            naming_path = Path(naming)
            if not naming_path.is_absolute():
                naming_path = (path.parent / naming_path).resolve()
            config.naming_rules_path = naming_path

        return config

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key, {}) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result

    def is_wide(self, control_type: str) -> bool:
        return control_type.lower() in {t.lower() for t in self.spans.wide_control_types}

    def is_label(self, control_type: str) -> bool:
        return control_type.lower() in {t.lower() for t in self.spans.label_types}


# 全局配置实例（只读）
_config: LayoutConfig | None = None


def get_config() -> LayoutConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        _config = LayoutConfig.from_yaml(DEFAULT_CONFIG_PATH)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> LayoutConfig:
    """重新加载配置"""
    global _config
    path = yaml_path or DEFAULT_CONFIG_PATH
    _config = LayoutConfig.from_yaml(path)
    return _config
