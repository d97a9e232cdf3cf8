#!/usr/bin/env python3
"""
Batch Module
Runs one function over many independent files with a fixed-size thread pool.

The path list is split into contiguous blocks, one block per worker. Workers
share nothing but the append-only result and error logs. A failure in one
file is caught, logged and recorded; it never cancels sibling work. The pool
is joined before run_batch() returns.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Tuple

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of a batch run

    Attributes:
        total: Number of input files
        results: (path, return value) for every file that succeeded
        errors: (path, error message) for every file that failed
    """
    total: int = 0
    results: List[Tuple[str, Any]] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def completed(self) -> int:
        return len(self.results)

    @property
    def success(self) -> bool:
        return not self.errors


def split_blocks(items, num_blocks):
    """Split a list into at most num_blocks contiguous, non-empty blocks

    Block sizes differ by at most one; earlier blocks get the extra item.
    """
    num_blocks = max(1, min(num_blocks, len(items)))
    base, extra = divmod(len(items), num_blocks)
    blocks = []
    start = 0
    for i in range(num_blocks):
        size = base + (1 if i < extra else 0)
        if size:
            blocks.append(items[start:start + size])
        start += size
    return blocks


def run_batch(paths, worker_fn: Callable[[str], Any], workers: int = 1,
              progress_callback=None) -> BatchResult:
    """Apply worker_fn to every path using a pool of threads

    Args:
        paths: Input file paths
        worker_fn: Called once per path; its return value is recorded
        workers: Pool size
        progress_callback: Optional function receiving one status line per file

    Returns:
        BatchResult: Aggregate results once every worker has finished
    """
    paths = [str(p) for p in paths]
    result = BatchResult(total=len(paths))
    if not paths:
        return result

    lock = threading.Lock()
    done = [0]

    def report(message):
        if progress_callback:
            progress_callback(message)

    def process_block(block):
        for path in block:
            try:
                value = worker_fn(path)
            except Exception as e:
                logger.error(f"Failed to process {path}: {e}")
                with lock:
                    result.errors.append((path, str(e)))
                    done[0] += 1
                    count = done[0]
                report(f"  ✗ [{count}/{len(paths)}] {path}: {e}")
                continue
            with lock:
                result.results.append((path, value))
                done[0] += 1
                count = done[0]
            report(f"  ✓ [{count}/{len(paths)}] {path}")

    blocks = split_blocks(paths, workers)
    logger.info(f"Processing {len(paths)} files with {len(blocks)} workers")

    with ThreadPoolExecutor(max_workers=len(blocks), thread_name_prefix="meshbridge-batch") as pool:
        futures = [pool.submit(process_block, block) for block in blocks]
        for future in futures:
            future.result()

    logger.info(f"Batch complete: {result.completed}/{result.total} succeeded, "
                f"{len(result.errors)} failed")
    return result
