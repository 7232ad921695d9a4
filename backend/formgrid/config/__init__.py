"""
配置层 - 加载布局参数与命名规则

职责：
- 加载 config/layout.yaml（运行期布局参数）
- 加载 config/naming_rules.yaml（重复节命名/默认标题）
- 提供类型安全的配置访问接口
"""

from .rules_loader import NamingLoader, NamingSpec, SectionAlias, load_naming_rules
from .runtime_config import (
    CompositionConfig,
    LayoutConfig,
    LoggingConfig,
    OrderingConfig,
    PlacementConfig,
    PositionConfig,
    SpanConfig,
    ValidationConfig,
    get_config,
    reload_config,
)

__all__ = [
    "NamingLoader",
    "NamingSpec",
    "SectionAlias",
    "load_naming_rules",
    "LayoutConfig",
    "PositionConfig",
    "SpanConfig",
    "OrderingConfig",
    "PlacementConfig",
    "ValidationConfig",
    "CompositionConfig",
    "LoggingConfig",
    "get_config",
    "reload_config",
]
