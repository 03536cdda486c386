#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
多进程生成并合并

主进程按工作进程数切分总行数，每个工作进程把自己的分片写入独立文件，
完成后通过队列发送一次完成信号；主进程收齐全部信号后才开始合并。
任何工作进程异常退出、超时或合并失败，整个任务以非零退出码结束。
"""

import logging
import multiprocessing as mp
import os
import queue
import sys
import time
from datetime import datetime
from typing import Dict, List, NamedTuple, Optional

from column_schema import ColumnSpec, SchemaError, check_duplicate_orders, sort_by_order
from fake_values import enable_pool, seed_values
from merger import MergeIOError, incomplete_path_for, merge_shards
from record_encoder import encode_header
from shard_writer import DEFAULT_BATCH_SIZE, WorkerIOError, shard_file_name, write_shard


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


class ShardAssignment(NamedTuple):
    """分配给一个工作进程的任务"""
    shard_index: int
    record_count: int
    columns: List[ColumnSpec]


class WorkerFailure(RuntimeError):
    """工作进程失败、未发送完成信号或超时"""


def compute_shard_sizes(total_records: int, worker_count: int) -> List[int]:
    """
    计算每个分片的行数

    每个分片取 ceil(total / workers) 行，最后剩余的行数给后面的分片，
    行数不够时靠后的分片为 0，不会出现负数
    """
    if worker_count < 1:
        raise ValueError(f"工作进程数必须至少为1: {worker_count}")
    if total_records < 0:
        raise ValueError(f"总行数不能为负数: {total_records}")

    base = -(-total_records // worker_count)
    sizes = []
    remaining = total_records
    for _ in range(worker_count - 1):
        size = min(base, remaining)
        sizes.append(size)
        remaining -= size
    sizes.append(remaining)
    return sizes


class CompletionTracker:
    """
    主进程持有的完成状态，只在收到完成信号时更新

    Args:
        expected: 需要收到的完成信号数
        processes: 分片序号 -> 工作进程（需要 exitcode / pid 属性）
    """

    def __init__(self, expected: int, processes: Dict[int, object]):
        self.expected = expected
        self.processes = processes
        self.completed: Dict[int, int] = {}
        self._silent_exits = set()

    @property
    def done(self) -> bool:
        return len(self.completed) >= self.expected

    @property
    def pending(self) -> List[int]:
        return sorted(i for i in self.processes if i not in self.completed)

    def record(self, message: dict) -> None:
        shard_index = message['shard_index']
        if shard_index in self.completed:
            logger.warning(f"分片 {shard_index} 重复发送完成信号，忽略")
            return
        self.completed[shard_index] = message.get('rows', 0)
        logger.info(f"分片 {shard_index} 完成: {message.get('rows', 0):,} 行 "
                    f"({len(self.completed)}/{self.expected})")

    def check_workers(self) -> None:
        """检查尚未完成的工作进程是否已经退出"""
        for shard_index in self.pending:
            process = self.processes[shard_index]
            exitcode = process.exitcode
            if exitcode is None:
                continue
            if exitcode != 0:
                raise WorkerFailure(f"分片 {shard_index} 的工作进程 (pid {process.pid}) 异常退出，退出码 {exitcode}")
            # 正常退出但信号可能还在队列里，下一轮仍未收到才算失败
            if shard_index in self._silent_exits:
                raise WorkerFailure(f"分片 {shard_index} 的工作进程 (pid {process.pid}) 已退出但未发送完成信号")
            self._silent_exits.add(shard_index)

    def wait(self, channel, timeout: Optional[float] = None,
             poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        """阻塞直到收齐全部完成信号，失败时抛出 WorkerFailure"""
        deadline = time.monotonic() + timeout if timeout is not None else None
        while not self.done:
            if deadline is not None and time.monotonic() >= deadline:
                raise WorkerFailure(f"等待超时 ({timeout} 秒)，未完成的分片: {self.pending}")
            try:
                message = channel.get(timeout=poll_interval)
            except queue.Empty:
                self.check_workers()
                continue
            self.record(message)


def _configure_worker_logging(level: int) -> None:
    # spawn/forkserver 启动的子进程没有继承主进程的日志配置
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.getLogger().setLevel(level)


def run_worker(assignment: ShardAssignment, shard_path: str, channel,
               batch_size: int = DEFAULT_BATCH_SIZE, delimiter: str = ',',
               seed: Optional[int] = None, use_pool: bool = False,
               log_level: int = logging.INFO) -> None:
    """工作进程入口：写完分片后发送一次完成信号，写入失败则以退出码 1 结束"""
    _configure_worker_logging(log_level)
    if seed is not None:
        seed_values(seed + assignment.shard_index)
    if use_pool:
        enable_pool()

    logger.info(f"[进程 {os.getpid()}] 正在生成分片 {assignment.shard_index}: "
                f"{assignment.record_count:,} 行 -> {shard_path}")
    try:
        rows = write_shard(assignment.columns, assignment.record_count, shard_path,
                           batch_size=batch_size, delimiter=delimiter,
                           shard_index=assignment.shard_index)
    except WorkerIOError as e:
        logger.error(f"✗ {e}")
        sys.exit(1)

    channel.put({'completed': True, 'shard_index': assignment.shard_index,
                 'rows': rows, 'pid': os.getpid()})


def _remove_stale_output(output_path: str) -> None:
    """删除上一次运行留下的输出文件"""
    for path in (output_path, incomplete_path_for(output_path)):
        if os.path.isfile(path):
            os.remove(path)
            logger.info(f"已删除旧的输出文件: {path}")


def _stop_workers(processes: Dict[int, mp.Process]) -> None:
    for process in processes.values():
        if process.is_alive():
            process.terminate()
    for process in processes.values():
        process.join()


def run(columns: List[ColumnSpec], total_records: int, worker_count: int,
        output_path: str = 'output.csv', work_dir: str = '.',
        batch_size: int = DEFAULT_BATCH_SIZE, delimiter: str = ',',
        seed: Optional[int] = None, worker_timeout: Optional[float] = None,
        use_pool: bool = False, poll_interval: float = DEFAULT_POLL_INTERVAL,
        mp_context=None) -> int:
    """
    多进程生成 total_records 行数据并合并到 output_path

    Returns:
        int: 退出码，0 表示成功
    """
    start_time = datetime.now()

    try:
        check_duplicate_orders(columns)
    except SchemaError as e:
        logger.error(f"列结构校验失败: {e}")
        return 1
    columns = sort_by_order(columns)

    shard_sizes = compute_shard_sizes(total_records, worker_count)
    os.makedirs(work_dir, exist_ok=True)
    try:
        _remove_stale_output(output_path)
    except OSError as e:
        logger.error(f"✗ 无法删除旧的输出文件: {e}")
        return 1

    def shard_path_for(shard_index: int) -> str:
        return os.path.join(work_dir, shard_file_name(shard_index))

    logger.info(f"使用 {worker_count} 个进程生成 {total_records:,} 行数据，分片行数: {shard_sizes}")

    ctx = mp_context or mp.get_context()
    channel = ctx.Queue()
    processes: Dict[int, mp.Process] = {}
    log_level = logging.getLogger().getEffectiveLevel()

    for shard_index, size in enumerate(shard_sizes):
        assignment = ShardAssignment(shard_index, size, list(columns))
        process = ctx.Process(
            target=run_worker,
            args=(assignment, shard_path_for(shard_index), channel,
                  batch_size, delimiter, seed, use_pool, log_level),
            name=f"shard-worker-{shard_index}",
        )
        process.start()
        processes[shard_index] = process

    tracker = CompletionTracker(worker_count, processes)
    try:
        tracker.wait(channel, timeout=worker_timeout, poll_interval=poll_interval)
    except WorkerFailure as e:
        logger.error(f"✗ 分片生成失败，不进行合并: {e}")
        _stop_workers(processes)
        return 1

    for process in processes.values():
        process.join()

    logger.info("所有工作进程已完成，开始合并文件...")
    header_size = len((encode_header(columns, delimiter) + '\n').encode('utf-8'))
    try:
        merge_shards(worker_count, shard_path_for, output_path, header_size=header_size)
    except MergeIOError as e:
        logger.error(f"✗ 合并失败，未合并的分片已保留: {e}")
        return 1

    elapsed = (datetime.now() - start_time).total_seconds()
    total_rows = sum(tracker.completed.values())
    file_size_mb = os.path.getsize(output_path) / (1024 * 1024)

    logger.info("=" * 60)
    logger.info("全部完成!")
    logger.info(f"总行数: {total_rows:,}")
    logger.info(f"输出文件: {output_path} ({file_size_mb:.2f} MB)")
    logger.info(f"总耗时: {elapsed:.2f} 秒")
    if elapsed > 0:
        logger.info(f"生成速度: {total_rows / elapsed:,.0f} 行/秒")
    logger.info("=" * 60)
    return 0
