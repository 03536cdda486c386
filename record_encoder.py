#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
将一行值编码为分隔符文本
只负责排序、转义和拼接，不关心值如何生成
"""

from collections.abc import Mapping
from typing import Any, List, Sequence, Union

from column_schema import ColumnSpec


def format_value(value: Any) -> str:
    if value is None:
        return ''
    elif isinstance(value, bool):
        return 'true' if value else 'false'
    else:
        return str(value)


def escape_field(text: str, delimiter: str = ',') -> str:
    """包含分隔符、引号或换行的字段用双引号包裹，内部引号加倍"""
    if delimiter in text or '"' in text or '\n' in text or '\r' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def encode_header(columns: List[ColumnSpec], delimiter: str = ',') -> str:
    return delimiter.join(escape_field(c.output_name, delimiter) for c in columns)


def encode_row(columns: List[ColumnSpec], values: Union[Sequence[Any], Mapping],
               delimiter: str = ',') -> str:
    """
    编码一行数据（不含换行符）

    Args:
        columns: 已按序号排序的列定义
        values: 与 columns 一一对应的值列表，或以列序号为键的字典
        delimiter: 分隔符
    """
    if isinstance(values, Mapping):
        ordered = [values[c.ordinal] if c.ordinal in values else values.get(c.order)
                   for c in columns]
    else:
        if len(values) != len(columns):
            raise ValueError(f"值个数 {len(values)} 与列数 {len(columns)} 不一致")
        ordered = values
    return delimiter.join(escape_field(format_value(v), delimiter) for v in ordered)
