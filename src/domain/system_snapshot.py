"""
Describe the current execution environment as a system config record.
"""

import os
import platform
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Optional

import settings
from db.schemas import SystemConfigRecord


def _package_version(distribution: str) -> Optional[str]:
    """Installed version of a distribution, or None if it is not installed."""
    try:
        return version(distribution)
    except PackageNotFoundError:
        return None


def _cpu_info() -> Optional[str]:
    cpuinfo = Path('/proc/cpuinfo')
    if cpuinfo.exists():
        for line in cpuinfo.read_text(errors='ignore').splitlines():
            if line.startswith('model name'):
                model = line.split(':', 1)[1].strip()
                return f"{model} ({os.cpu_count()} cores)"
    name = platform.processor() or platform.machine()
    return f"{name} ({os.cpu_count()} cores)" if name else None


def _memory_gb() -> Optional[float]:
    """Total physical memory in GB (POSIX only)."""
    try:
        total_bytes = os.sysconf('SC_PAGE_SIZE') * os.sysconf('SC_PHYS_PAGES')
    except (AttributeError, ValueError, OSError):
        return None
    return round(total_bytes / 1024 ** 3, 2)


def capture_system_config(
    gpu_info: Optional[str] = None,
    runtime_type: Optional[str] = None
) -> SystemConfigRecord:
    """
    Snapshot the interpreter, numeric library versions and host hardware.

    Args:
        gpu_info: GPU description (defaults to GPU_INFO setting)
        runtime_type: Execution environment class such as 'standard',
                      'high-ram' or 'gpu' (defaults to COLAB_RUNTIME_TYPE setting)

    Returns:
        SystemConfigRecord ready to insert
    """
    return SystemConfigRecord(
        python_version=platform.python_version(),
        numpy_version=_package_version('numpy'),
        scipy_version=_package_version('scipy'),
        networkx_version=_package_version('networkx'),
        cpu_info=_cpu_info(),
        memory_gb=_memory_gb(),
        gpu_info=gpu_info or settings.GPU_INFO,
        colab_runtime_type=runtime_type or settings.COLAB_RUNTIME_TYPE,
    )
