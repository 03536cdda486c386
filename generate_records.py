#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
根据列结构文件生成模拟数据

功能：
1. 多进程生成 CSV，每个进程写一个分片文件，最后按序合并为一个文件
2. 单进程生成 xlsx（--format xlsx）
"""

import argparse
import logging
import os
import sys
from multiprocessing import cpu_count
from typing import Optional

from column_schema import SchemaError, load_schema
import coordinator
from fake_values import enable_pool, seed_values
from shard_writer import DEFAULT_BATCH_SIZE
from spreadsheet_writer import DEFAULT_CHUNK_SIZE, write_workbook


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

DEFAULT_RECORDS = 1000
DELIMITER_MAP = {'tab': '\t', '\\t': '\t', 'comma': ',', 'pipe': '|'}


def parse_record_count(raw: Optional[str], default: int = DEFAULT_RECORDS) -> int:
    """解析行数参数，缺失、非数字或非正数时使用默认值"""
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"无效的行数 {raw!r}，使用默认值 {default}")
        return default
    if value <= 0:
        logger.warning(f"行数必须为正数: {value}，使用默认值 {default}")
        return default
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='根据列结构文件生成模拟数据',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用示例:
  # 使用全部 CPU 核心生成 100000 行 output.csv
  python generate_records.py 100000

  # 指定列结构文件和进程数
  python generate_records.py 100000 -s schema.json -w 4

  # 生成 xlsx（单进程）
  python generate_records.py 5000 --format xlsx
        """
    )
    parser.add_argument('records', nargs='?', default=None,
                        help=f'生成的数据行数 (默认: {DEFAULT_RECORDS})')
    parser.add_argument('-s', '--schema', default='input.json',
                        help='列结构文件路径 (默认: input.json)')
    parser.add_argument('-o', '--output', default=None,
                        help='输出文件 (默认: output.csv / output.xlsx)')
    parser.add_argument('-w', '--workers', type=int, default=None,
                        help='进程数 (默认: CPU核心数)')
    parser.add_argument('-b', '--batch-size', type=int, default=DEFAULT_BATCH_SIZE,
                        help=f'每批写入行数 (默认: {DEFAULT_BATCH_SIZE})')
    parser.add_argument('-d', '--work-dir', default='.',
                        help='分片文件目录 (默认: 当前目录)')
    parser.add_argument('--worker-timeout', type=float, default=None,
                        help='等待工作进程完成的最长秒数 (默认: 不限)')
    parser.add_argument('--seed', type=int, default=None, help='随机种子')
    parser.add_argument('--format', choices=['csv', 'xlsx'], default='csv', help='输出格式')
    parser.add_argument('--delimiter', default=',', help='分隔符 (tab/comma/pipe，默认逗号)')
    parser.add_argument('--pool', action='store_true', help='使用预生成字符串池加速')
    parser.add_argument('-v', '--verbose', action='store_true', help='显示详细日志')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    delimiter = DELIMITER_MAP.get(args.delimiter.lower(), args.delimiter)
    if len(delimiter) != 1:
        parser.error(f"分隔符必须是单字符: '{args.delimiter}'")
    if args.workers is not None and args.workers < 1:
        parser.error("进程数必须至少为1")
    if args.batch_size < 1:
        parser.error("批量大小必须至少为1")
    if args.worker_timeout is not None and args.worker_timeout <= 0:
        parser.error("等待超时必须为正数")

    if args.format == 'xlsx':
        # 单进程模式下无效行数直接报错
        try:
            total_records = int(args.records)
        except (TypeError, ValueError):
            parser.error("无效的行数，请输入正整数")
        if total_records <= 0:
            parser.error("无效的行数，请输入正整数")
    else:
        total_records = parse_record_count(args.records)

    try:
        logger.info(f"正在解析列结构文件: {args.schema}")
        columns = load_schema(args.schema)
    except SchemaError as e:
        logger.error(f"✗ 列结构加载失败: {e}")
        return 1

    if args.format == 'xlsx':
        seed_values(args.seed)
        if args.pool:
            enable_pool()
        output = args.output or 'output.xlsx'
        try:
            write_workbook(columns, total_records, output, chunk_size=DEFAULT_CHUNK_SIZE)
        except OSError as e:
            logger.error(f"✗ 写入 {output} 失败: {e}")
            return 1
        return 0

    workers = args.workers or cpu_count()
    return coordinator.run(
        columns, total_records, workers,
        output_path=args.output or os.path.join(args.work_dir, 'output.csv'),
        work_dir=args.work_dir,
        batch_size=args.batch_size,
        delimiter=delimiter,
        seed=args.seed,
        worker_timeout=args.worker_timeout,
        use_pool=args.pool,
    )


if __name__ == '__main__':
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.warning("\n用户中断操作")
        sys.exit(130)
