"""
重复节命名 - 名称规范化、由片段ID推导重复节名、默认标题

规则来自 config/naming_rules.yaml（见 NamingSpec）：
- TABLECTRL12 -> Table_CTRL12（前缀不区分大小写）；已规范的名称保持不变
- 其余名称空格替换为下划线
- 片段ID形如 {表单}_{视图}_{重复节}_List / _Item
"""

from __future__ import annotations

from ..config import NamingSpec, load_naming_rules
from ..models import FragmentRole


def normalize_section_name(name: str | None, rules: NamingSpec | None = None) -> str | None:
    """规范化重复节名称"""
    if not name:
        return name
    rules = rules if rules is not None else load_naming_rules()

    for alias in rules.get_aliases():
        if name.upper().startswith(alias.prefix.upper()):
            return alias.replacement + name[len(alias.prefix):]
        if name.upper().startswith(alias.replacement.upper()):
            return name

    return name.replace(" ", "_")


def section_from_fragment_id(
    fragment_id: str,
    view_name: str | None = None,
    rules: NamingSpec | None = None,
) -> str | None:
    """
    由 List/Item 片段ID推导重复节名称

    Args:
        fragment_id: 片段ID，如 Expense_Report_view1_Table_CTRL243_List
        view_name: 源视图名（如 view1），用于精确截取

    Returns:
        规范化后的重复节名称；ID不带 List/Item 后缀时返回 None
    """
    rules = rules if rules is not None else load_naming_rules()

    base = None
    for role in (FragmentRole.LIST, FragmentRole.ITEM):
        suffix = rules.get_suffix(role.value)
        if suffix and suffix in fragment_id:
            base = fragment_id[:fragment_id.rindex(suffix)]
            break
    if not base:
        return None

    if view_name and f"_{view_name}_" in base:
        start = base.index(f"_{view_name}_") + len(view_name) + 2
        if start < len(base):
            return normalize_section_name(base[start:], rules)

    # 别名形式的名称自身含下划线，整体保留
    upper = base.upper()
    for alias in rules.get_aliases():
        for marker in (alias.replacement, alias.prefix):
            idx = upper.find(marker.upper())
            if idx >= 0:
                return normalize_section_name(base[idx:], rules)

    head, _, tail = base.rpartition("_")
    return normalize_section_name(tail if head and tail else base, rules)


def display_name(name: str) -> str:
    """对象名转显示名（下划线 -> 空格）"""
    return name.replace("_", " ").strip()


def default_title(
    role: FragmentRole | str, name: str, rules: NamingSpec | None = None
) -> str:
    """按片段角色生成默认标题：New X / View X / X List"""
    rules = rules if rules is not None else load_naming_rules()
    role_key = role.value if isinstance(role, FragmentRole) else str(role)
    return rules.format_title(role_key, display_name(name))
