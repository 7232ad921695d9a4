"""
可见性指令 - 由重复节的顶层/嵌套分类推导组合区域的成员顺序与默认隐藏集合

- 顶层：[item, list]，隐藏 {list}（Item片段为用户可见界面，List为后台数据）
- 嵌套：[list, item]，隐藏 {list, item}（运行期由外部逻辑展开）
- 独立片段：无指令

纯函数，无状态。
"""

from __future__ import annotations

from typing import Union

from ..interfaces import IVisibilityAssigner
from ..models import Fragment, FragmentPair, VisibilityDirective


class VisibilityAssigner(IVisibilityAssigner):
    """可见性指令生成器"""

    def assign(self, pair: FragmentPair) -> VisibilityDirective:
        list_id, item_id = pair.member_ids
        if pair.is_top_level:
            return VisibilityDirective(member_order=[item_id, list_id], hidden_members={list_id})
        return VisibilityDirective(
            member_order=[list_id, item_id], hidden_members={list_id, item_id}
        )

    def directive_for(
        self, content: Union[Fragment, FragmentPair]
    ) -> VisibilityDirective | None:
        if isinstance(content, FragmentPair):
            return self.assign(content)
        return None
