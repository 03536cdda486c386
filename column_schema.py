#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
列结构定义
读取 input.json 中的列描述，校验列序号唯一并按序号排序
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional


logger = logging.getLogger(__name__)


class SchemaError(ValueError):
    """列结构错误（重复序号、JSON格式错误等），在生成任何数据之前抛出"""


class DataType:
    """列类型定义"""
    STRING = 'String'
    NUMERIC = 'Numeric'
    DATE = 'Date'


class ColumnSpec(NamedTuple):
    """一列的定义"""
    data_type: str
    format: Optional[str]
    order: str
    output_name: str
    is_date: bool = False
    is_double: bool = False
    is_integer: bool = False

    @property
    def ordinal(self) -> int:
        return int(self.order)


def _flag(value: Any) -> bool:
    return str(value).strip() == '1'


def load_columns(raw_specs: List[Dict[str, Any]]) -> List[ColumnSpec]:
    """
    将 JSON 列描述转换为 ColumnSpec 列表

    Args:
        raw_specs: JSON 数组，每个元素包含 DataType / Format / Order /
                   ExcelColumnName / IsDate / IsDouble / IsInteger

    Returns:
        List[ColumnSpec]: 保持原始顺序的列定义
    """
    if not isinstance(raw_specs, list):
        raise SchemaError(f"列结构必须是 JSON 数组，实际为: {type(raw_specs).__name__}")

    columns = []
    for i, raw in enumerate(raw_specs):
        if not isinstance(raw, dict):
            raise SchemaError(f"第 {i + 1} 列不是 JSON 对象: {raw!r}")
        try:
            order = str(raw['Order']).strip()
            output_name = str(raw['ExcelColumnName'])
        except KeyError as e:
            raise SchemaError(f"第 {i + 1} 列缺少字段 {e}") from e

        try:
            int(order)
        except ValueError:
            raise SchemaError(f"列 {output_name} 的序号不是整数: {order!r}") from None

        fmt = raw.get('Format')
        columns.append(ColumnSpec(
            data_type=str(raw.get('DataType', '')),
            format=str(fmt) if fmt not in (None, '') else None,
            order=order,
            output_name=output_name,
            is_date=_flag(raw.get('IsDate', '0')),
            is_double=_flag(raw.get('IsDouble', '0')),
            is_integer=_flag(raw.get('IsInteger', '0')),
        ))
    return columns


def check_duplicate_orders(columns: List[ColumnSpec]) -> None:
    """检查列序号是否重复，重复则抛出 SchemaError"""
    seen = set()
    for column in columns:
        if column.ordinal in seen:
            raise SchemaError(f"列序号重复 (duplicate ordinal): {column.order}")
        seen.add(column.ordinal)


def sort_by_order(columns: List[ColumnSpec]) -> List[ColumnSpec]:
    """按序号升序排序（稳定排序）"""
    return sorted(columns, key=lambda c: c.ordinal)


def read_schema_file(path: str) -> List[Dict[str, Any]]:
    """读取列结构文件，返回原始 JSON 数组"""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        raise SchemaError(f"列结构文件不存在: {path}") from None
    except json.JSONDecodeError as e:
        raise SchemaError(f"列结构文件 JSON 格式错误: {path} - {e}") from e


def load_schema(path: str) -> List[ColumnSpec]:
    """读取、校验并排序列结构"""
    columns = load_columns(read_schema_file(path))
    check_duplicate_orders(columns)
    columns = sort_by_order(columns)
    logger.info(f"解析完成，共 {len(columns)} 列: {', '.join(c.output_name for c in columns)}")
    return columns
