"""
Performance diagnostics for the vault storage layer.

Each measurement runs against the SecureStorage it is given and clears it
afterwards, so point it at a scratch store rather than a real vault.
"""

import asyncio
import datetime
import logging
import os
import platform
import random
import string
import sys
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import psutil

from . import config
from .storage import Credential, SecureStorage

logger = logging.getLogger(__name__)


@dataclass
class PerformanceMetrics:
    """Timing and success figures for one diagnostic run."""
    operation_type: str
    operation_count: int
    total_time_ms: float
    average_time_ms: float
    success_rate: float
    memory_usage_mb: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _random_string(length: int) -> str:
    return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))


def generate_random_credential() -> Credential:
    """Generate a random credential for testing."""
    random_id = _random_string(13)
    return Credential(
        id=f"test-{random_id}",
        username=f"user_{_random_string(8)}",
        password=f"pass_{_random_string(12)}#{random.randint(0, 99)}",
        notes=f"Test notes for credential {random_id}. Generated for performance testing.",
        created_at=datetime.datetime.now().isoformat()
    )


def generate_random_credentials(count: int) -> List[Credential]:
    """Generate a specified number of random credentials."""
    return [generate_random_credential() for _ in range(count)]


def get_memory_usage() -> Optional[float]:
    """Resident memory of this process in MB, or None if it cannot be read."""
    try:
        return round(psutil.Process(os.getpid()).memory_info().rss / (1024 * 1024), 1)
    except psutil.Error as e:
        logger.error(f"Error getting memory usage: {e}")
        return None


async def measure_storage_performance(storage: SecureStorage, credential_count: int = config.DIAGNOSTICS_STORAGE_COUNT) -> PerformanceMetrics:
    """Time one store-and-flush of credential_count credentials."""
    credentials = generate_random_credentials(credential_count)
    success_count = 0

    start = time.perf_counter()
    try:
        storage.store(credentials)
        await storage.flush()
        success_count += 1
    except Exception as e:
        logger.error(f"Storage test error: {e}")
    total_ms = (time.perf_counter() - start) * 1000

    memory = get_memory_usage()
    storage.clear()

    return PerformanceMetrics(
        operation_type='storage',
        operation_count=1,
        total_time_ms=total_ms,
        average_time_ms=total_ms,
        success_rate=success_count * 100.0,
        memory_usage_mb=memory
    )


async def measure_batch_operations(
    storage: SecureStorage,
    batch_size: int = config.DIAGNOSTICS_BATCH_SIZE,
    batch_count: int = config.DIAGNOSTICS_BATCH_COUNT,
) -> PerformanceMetrics:
    """Store, flush and read back batch_count batches, counting the ones that round-trip."""
    storage.clear()
    success_count = 0

    start = time.perf_counter()
    for i in range(batch_count):
        try:
            storage.store(generate_random_credentials(batch_size))
            await storage.flush()
            if len(storage.retrieve()) == batch_size:
                success_count += 1
            storage.clear()
        except Exception as e:
            logger.error(f"Batch {i} failed: {e}")
    total_ms = (time.perf_counter() - start) * 1000

    return PerformanceMetrics(
        operation_type='batch',
        operation_count=batch_count,
        total_time_ms=total_ms,
        average_time_ms=total_ms / batch_count if batch_count else 0.0,
        success_rate=(success_count / batch_count) * 100 if batch_count else 0.0,
        memory_usage_mb=get_memory_usage()
    )


async def run_stress_test(storage: SecureStorage, max_credentials: int, steps: int = 5) -> List[PerformanceMetrics]:
    """
    Store and read back growing snapshots.

    Tests with max_credentials/steps, 2*max_credentials/steps, ... credentials.
    A failing step is reported with zero timings and a zero success rate.
    """
    results = []
    if steps <= 0:
        return results
    step_size = max_credentials // steps

    for i in range(1, steps + 1):
        count = i * step_size
        storage.clear()
        logger.info(f"Running stress test with {count} credentials...")
        try:
            credentials = generate_random_credentials(count)
            start = time.perf_counter()
            storage.store(credentials)
            await storage.flush()
            retrieved = storage.retrieve()
            total_ms = (time.perf_counter() - start) * 1000
            results.append(PerformanceMetrics(
                operation_type=f"stress-{count}",
                operation_count=count,
                total_time_ms=total_ms,
                average_time_ms=total_ms / 2,  # one store, one retrieve
                success_rate=(len(retrieved) / count) * 100 if count else 100.0,
                memory_usage_mb=get_memory_usage()
            ))
        except Exception as e:
            logger.error(f"Stress test with {count} credentials failed: {e}")
            results.append(PerformanceMetrics(
                operation_type=f"stress-{count}",
                operation_count=count,
                total_time_ms=0.0,
                average_time_ms=0.0,
                success_rate=0.0,
                memory_usage_mb=get_memory_usage()
            ))
        storage.clear()
        await asyncio.sleep(0)

    return results


def get_system_info() -> Dict[str, Any]:
    """Collect host details to attach to a diagnostics report."""
    memory = psutil.virtual_memory()
    return {
        'platform': platform.platform(),
        'python_version': sys.version.split()[0],
        'cpu_count': psutil.cpu_count(),
        'memory_total_mb': round(memory.total / (1024 * 1024)),
        'memory_available_mb': round(memory.available / (1024 * 1024)),
        'process_memory_mb': get_memory_usage(),
        'timestamp': datetime.datetime.now().isoformat(),
    }
