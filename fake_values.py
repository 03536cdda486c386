#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
按列类型生成模拟值
每个进程独立初始化 Faker，支持随机种子和预生成字符串池
"""

import random
import string
from datetime import timezone
from typing import Any, List, Optional

from faker import Faker

from column_schema import ColumnSpec, DataType


DEFAULT_STRING_LENGTH = 50
MAX_SAFE_INTEGER = 2 ** 53 - 1

# 常见日期格式 -> strftime
DATE_FORMATS = {
    'MM/DD/YYYY': '%m/%d/%Y',
    'DD/MM/YYYY': '%d/%m/%Y',
    'YYYY-MM-DD': '%Y-%m-%d',
    'YYYY/MM/DD': '%Y/%m/%d',
}

# 延迟初始化 Faker（在子进程中按需初始化）
fake = None


def _init_faker():
    global fake
    if fake is None:
        fake = Faker('en_US')


def seed_values(seed: Optional[int]) -> None:
    """设置随机种子，同一种子生成相同的数据序列"""
    if seed is None:
        return
    _init_faker()
    random.seed(seed)
    Faker.seed(seed)


class StringPool:
    """
    预生成字符串池，避免每行都重新生成随机字符串

    固定大小，按顺序轮转取值，不保证任何统计分布
    """

    def __init__(self, size: int = 5000, max_length: int = DEFAULT_STRING_LENGTH):
        _init_faker()
        self.size = size
        self.max_length = max_length
        self._values = [
            ''.join(fake.random.choices(string.ascii_letters, k=max_length))
            for _ in range(size)
        ]
        self._pos = 0

    def take(self, length: int) -> str:
        value = self._values[self._pos]
        self._pos = (self._pos + 1) % self.size
        if length > self.max_length:
            # 超出池内字符串长度时拼接下一个
            return (value + self.take(length - self.max_length))[:length]
        return value[:length]


_pool: Optional[StringPool] = None


def enable_pool(size: int = 5000) -> None:
    """开启字符串池（每个进程各自一份）"""
    global _pool
    _pool = StringPool(size=size)


def disable_pool() -> None:
    global _pool
    _pool = None


def _string_length_limit(column: ColumnSpec) -> int:
    try:
        limit = int(column.format) if column.format else DEFAULT_STRING_LENGTH
    except ValueError:
        limit = DEFAULT_STRING_LENGTH
    return max(1, limit)


def generate_string(column: ColumnSpec) -> str:
    """生成长度 1..Format 的字母串"""
    length = fake.random.randint(1, _string_length_limit(column))
    if _pool is not None:
        return _pool.take(length)
    return ''.join(fake.random.choices(string.ascii_letters, k=length))


def generate_numeric(column: ColumnSpec) -> Any:
    if column.is_integer:
        return fake.random_int(0, MAX_SAFE_INTEGER)
    if column.is_double:
        return round(fake.random.random(), 2)
    return fake.random.random()


def generate_date(column: ColumnSpec) -> str:
    """生成过去一年内的日期，无格式时输出 ISO-8601"""
    dt = fake.date_time_between(start_date='-1y', end_date='now', tzinfo=timezone.utc)
    fmt = column.format
    if fmt in DATE_FORMATS:
        return dt.strftime(DATE_FORMATS[fmt])
    if fmt and '%' in fmt:
        return dt.strftime(fmt)
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"


def generate_value(column: ColumnSpec) -> Any:
    """根据列类型生成一个值，未知类型返回 None"""
    _init_faker()
    if column.data_type == DataType.STRING:
        return generate_string(column)
    elif column.data_type == DataType.NUMERIC:
        return generate_numeric(column)
    elif column.data_type == DataType.DATE:
        return generate_date(column)
    return None


def generate_values(columns: List[ColumnSpec], value_provider=generate_value) -> List[Any]:
    """按列顺序生成一行的值"""
    return [value_provider(column) for column in columns]
