#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
按分片序号合并分片文件

合并过程中先写入 <final>.incomplete，全部分片追加完成后才重命名为最终文件。
每个分片追加完成后立即删除；出错时立即中止，未合并的分片保留在磁盘上。
"""

import logging
import os
import shutil
from typing import Callable, Optional

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 64 * 1024
INCOMPLETE_SUFFIX = '.incomplete'


class MergeIOError(OSError):
    """分片不可读或最终文件不可写"""


def incomplete_path_for(final_path: str) -> str:
    return final_path + INCOMPLETE_SUFFIX


def merge_shards(shard_count: int, shard_path_for: Callable[[int], str], final_path: str,
                 skip_shard_headers: bool = True, header_size: Optional[int] = None,
                 buffer_size: int = COPY_BUFFER_SIZE) -> int:
    """
    合并分片文件

    Args:
        shard_count: 分片数量
        shard_path_for: 分片序号 -> 分片文件路径
        final_path: 最终输出文件
        skip_shard_headers: 除第一个分片外，丢弃每个分片的表头
        header_size: 表头（含换行符）的字节数；表头字段含换行时必须提供，
                     为 None 时丢弃第一行
        buffer_size: 复制缓冲区大小

    Returns:
        int: 写入最终文件的字节数
    """
    partial_path = incomplete_path_for(final_path)
    try:
        out = open(partial_path, 'wb')
    except OSError as e:
        raise MergeIOError(f"无法创建输出文件: {partial_path} - {e}") from e

    with out:
        for index in range(shard_count):
            shard_path = shard_path_for(index)
            try:
                src = open(shard_path, 'rb')
            except OSError as e:
                raise MergeIOError(f"分片 {index} 不可读: {shard_path} - {e}") from e

            with src:
                try:
                    if index > 0 and skip_shard_headers:
                        if header_size is None:
                            src.readline()
                        elif len(src.read(header_size)) != header_size:
                            raise MergeIOError(f"分片 {index} 不完整，缺少表头: {shard_path}")
                    shutil.copyfileobj(src, out, buffer_size)
                except MergeIOError:
                    raise
                except OSError as e:
                    raise MergeIOError(f"合并分片 {index} 失败: {shard_path} -> {partial_path} - {e}") from e

            try:
                os.remove(shard_path)
            except OSError as e:
                logger.error(f"删除分片文件失败: {shard_path} - {e}")
            logger.debug(f"分片 {index + 1}/{shard_count} 已合并: {shard_path}")

        try:
            out.flush()
            written = out.tell()
        except OSError as e:
            raise MergeIOError(f"写入输出文件失败: {partial_path} - {e}") from e

    try:
        os.replace(partial_path, final_path)
    except OSError as e:
        raise MergeIOError(f"无法重命名输出文件: {partial_path} -> {final_path} - {e}") from e

    logger.info(f"全部 {shard_count} 个分片已合并到 {final_path}")
    return written
