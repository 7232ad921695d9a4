"""
坐标编解码 - 坐标串 <-> GridPosition

职责：
1. 解析 "3B" 形式的坐标串：前导数字为行号，末尾字母为列号
2. 列号采用双射26进制（A=0 ... Z=25, AA=26）
3. 行号缺失/无法解析时使用兜底行（默认999，排在最后）并输出诊断

测试要点：
- test_decode_basic: 基本解析
- test_decode_multi_letter_column: 多字母列
- test_decode_malformed: 兜底行与诊断
- test_roundtrip: decode(encode(p)) == p
"""

from __future__ import annotations

import re

from ..config import LayoutConfig, get_config
from ..diagnostics import NullSink
from ..interfaces import IDiagnosticSink, IPositionCodec, MalformedPositionError
from ..models import Diagnostic, DiagnosticCode, GridPosition

# 前导数字 + 末尾字母，中间不允许其它字符
_TOKEN_RE = re.compile(r"^\s*(\d*)\s*([A-Za-z]*)\s*$")


def column_letter(column: int) -> str:
    """列号 -> 字母（0 -> A, 25 -> Z, 26 -> AA）"""
    if column < 0:
        raise ValueError(f"列号不能为负: {column}")
    letters = ""
    n = column + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_number(letters: str) -> int:
    """字母 -> 列号（A -> 0, AA -> 26）；空串为0"""
    n = 0
    for ch in letters.upper():
        if not "A" <= ch <= "Z":
            raise ValueError(f"非法列字母: {letters}")
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return max(n - 1, 0)


class PositionCodec(IPositionCodec):
    """坐标编解码器"""

    def __init__(
        self,
        config: LayoutConfig | None = None,
        sink: IDiagnosticSink | None = None,
    ):
        self.config = config if config is not None else get_config()
        self.sink = sink if sink is not None else NullSink()

    @property
    def sentinel_row(self) -> int:
        return self.config.positions.sentinel_row

    @staticmethod
    def parse(token: str | None) -> GridPosition | None:
        """解析坐标串，无法解析时返回 None（不输出诊断）"""
        match = _TOKEN_RE.match(token or "")
        if not match or not match.group(1) or int(match.group(1)) < 1:
            return None
        return GridPosition(row=int(match.group(1)), column=column_number(match.group(2)))

    def decode(
        self,
        token: str | None,
        *,
        fragment_id: str | None = None,
        control_id: str | None = None,
    ) -> GridPosition:
        pos = self.parse(token)
        if pos is not None:
            return pos

        message = f"无法解析坐标串 {token!r}，使用兜底行 {self.sentinel_row}"
        if self.config.validation.strict_positions:
            raise MalformedPositionError(f"{control_id or '-'}: {message}")

        self.sink.emit(
            Diagnostic(
                code=DiagnosticCode.MALFORMED_POSITION_TOKEN,
                message=message,
                fragment_id=fragment_id,
                control_id=control_id,
                details={"token": token},
            )
        )
        # 末尾字母仍可识别时保留列号
        match = _TOKEN_RE.match(token or "")
        column = column_number(match.group(2)) if match else 0
        return GridPosition(row=self.sentinel_row, column=column)

    def encode(self, row: int, column: int) -> str:
        return f"{row}{column_letter(column)}"
