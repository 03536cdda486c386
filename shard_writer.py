#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
单个分片文件的写入
按批生成数据，每批一次写入；缓冲区写满时先刷盘再继续下一批
"""

import logging
import os
from typing import List, Optional

from column_schema import ColumnSpec
from fake_values import generate_value, generate_values
from record_encoder import encode_header, encode_row


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50000
DEFAULT_HIGH_WATER_MARK = 64 * 1024
SHARD_PREFIX = 'output_part'


class WorkerIOError(OSError):
    """分片写入失败"""


def shard_file_name(shard_index: int, prefix: str = SHARD_PREFIX, ext: str = '.csv') -> str:
    return f"{prefix}_{shard_index}{ext}"


class BufferedSink:
    """
    带上限的写入目标

    write() 只把数据放进内存缓冲区，缓冲区达到 high_water_mark 时返回 False，
    调用方必须先 drain() 把数据写入文件，才能继续写下一批
    """

    def __init__(self, path: str, high_water_mark: int = DEFAULT_HIGH_WATER_MARK):
        self.path = path
        self.high_water_mark = high_water_mark
        self._pending: List[str] = []
        self._pending_size = 0
        self.drain_count = 0
        self._file = open(path, 'w', encoding='utf-8', newline='')

    @property
    def saturated(self) -> bool:
        return self._pending_size >= self.high_water_mark

    @property
    def pending_size(self) -> int:
        return self._pending_size

    def write(self, text: str) -> bool:
        if self._file.closed:
            raise ValueError(f"写入已关闭的文件: {self.path}")
        self._pending.append(text)
        self._pending_size += len(text)
        return not self.saturated

    def drain(self) -> None:
        """把缓冲区写入文件并刷新到操作系统"""
        if self._pending:
            self._file.write(''.join(self._pending))
            self._pending = []
            self._pending_size = 0
        self._file.flush()
        self.drain_count += 1

    def close(self) -> None:
        if self._file.closed:
            return
        try:
            self.drain()
        finally:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def write_shard(columns: List[ColumnSpec], record_count: int, sink_path: str,
                batch_size: int = DEFAULT_BATCH_SIZE, delimiter: str = ',',
                value_provider=generate_value,
                high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
                shard_index: Optional[int] = None) -> int:
    """
    生成 record_count 行数据写入 sink_path

    Args:
        columns: 已排序的列定义
        record_count: 行数，为 0 时只写表头
        sink_path: 分片文件路径
        batch_size: 每批行数
        delimiter: 分隔符
        value_provider: (ColumnSpec) -> 值
        high_water_mark: 写入缓冲区上限（字符数）
        shard_index: 分片序号，仅用于日志

    Returns:
        int: 实际写入的数据行数
    """
    if record_count < 0:
        raise ValueError(f"行数不能为负数: {record_count}")
    if batch_size < 1:
        raise ValueError(f"批量大小必须至少为1: {batch_size}")

    label = f"分片 {shard_index}" if shard_index is not None else sink_path
    rows_written = 0
    try:
        with BufferedSink(sink_path, high_water_mark=high_water_mark) as sink:
            if not sink.write(encode_header(columns, delimiter) + '\n'):
                sink.drain()

            while rows_written < record_count:
                batch_end = min(rows_written + batch_size, record_count)
                lines = []
                for _ in range(rows_written, batch_end):
                    values = generate_values(columns, value_provider)
                    lines.append(encode_row(columns, values, delimiter))
                lines.append('')
                rows_written = batch_end

                if not sink.write('\n'.join(lines)):
                    sink.drain()
                logger.debug(f"[进程 {os.getpid()}] {label}: 已生成 {rows_written:,}/{record_count:,} 行")
    except OSError as e:
        raise WorkerIOError(f"{label} 写入失败: {sink_path} - {e}") from e

    return rows_written
