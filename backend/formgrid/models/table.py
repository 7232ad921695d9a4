"""
表格描述模型 - 片段的稠密行列矩阵

供渲染/装配模块消费：
    Table = {column_count, rows: [{cells: [{col_span, row_span, control_refs}]}]}
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TableCell(BaseModel):
    """单元格（合并后的存活格）"""
    column: int = Field(..., ge=0, description="起始列")
    col_span: int = Field(1, ge=1)
    row_span: int = 1
    control_refs: list[str] = Field(default_factory=list, description="放置的控件ID")

    @property
    def end_column(self) -> int:
        """占用的最后一列（含）"""
        return self.column + self.col_span - 1

    @property
    def is_empty(self) -> bool:
        return not self.control_refs


class TableRow(BaseModel):
    """表格行"""
    row: int = Field(..., ge=1)
    cells: list[TableCell] = Field(default_factory=list)

    def cell_at(self, column: int) -> TableCell | None:
        """返回覆盖该列的单元格"""
        for cell in self.cells:
            if cell.column <= column <= cell.end_column:
                return cell
        return None


class Table(BaseModel):
    """片段表格描述"""
    fragment_id: str | None = None
    column_count: int = Field(..., ge=1)
    row_count: int = 0
    title: str | None = None
    rows: list[TableRow] = Field(default_factory=list)

    def cell_at(self, row: int, column: int) -> TableCell | None:
        if 1 <= row <= len(self.rows):
            return self.rows[row - 1].cell_at(column)
        return None

    def placed_control_ids(self) -> list[str]:
        """按行优先顺序返回已放置控件ID"""
        return [ref for r in self.rows for c in r.cells for ref in c.control_refs]
