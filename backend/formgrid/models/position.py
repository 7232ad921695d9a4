"""
网格坐标模型 - 控件在片段隐式表格中的(行, 列)位置

行号从1开始，列号从0开始（A=0）
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GridPosition(BaseModel):
    """网格坐标"""
    row: int = Field(..., ge=1, description="行号(从1开始)")
    column: int = Field(0, ge=0, description="列号(A=0)")

    model_config = {"frozen": True}

    def shifted(self, rows: int) -> GridPosition:
        """按行平移（返回新对象）"""
        return GridPosition(row=self.row + rows, column=self.column)
