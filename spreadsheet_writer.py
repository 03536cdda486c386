#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
单进程生成 xlsx 文件
使用 openpyxl 只写模式按块流式写入，不做分片和合并
"""

import logging
import math
from typing import List

from openpyxl import Workbook

from column_schema import ColumnSpec
from fake_values import generate_value, generate_values


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 5000
SHEET_NAME = 'Sheet1'


def write_workbook(columns: List[ColumnSpec], total_records: int, output_path: str,
                   chunk_size: int = DEFAULT_CHUNK_SIZE, value_provider=generate_value) -> int:
    """
    生成 total_records 行数据写入 xlsx

    Returns:
        int: 写入的数据行数
    """
    if total_records < 0:
        raise ValueError(f"行数不能为负数: {total_records}")

    workbook = Workbook(write_only=True)
    worksheet = workbook.create_sheet(SHEET_NAME)
    worksheet.append([c.output_name for c in columns])

    total_chunks = math.ceil(total_records / chunk_size)
    rows_written = 0
    for i in range(total_chunks):
        rows_in_chunk = min(chunk_size, total_records - i * chunk_size)
        for _ in range(rows_in_chunk):
            worksheet.append(generate_values(columns, value_provider))
        rows_written += rows_in_chunk
        logger.info(f"块 {i + 1}/{total_chunks} 已生成 ({rows_written:,} 行)")

    workbook.save(output_path)
    logger.info(f"{rows_written:,} 行数据已写入 {output_path}")
    return rows_written
