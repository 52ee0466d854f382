"""
Runtime configuration for packview.

Holds the tunables used when reading package content.
Provides a unified configuration that flows through loaders and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass


DEFAULT_COPY_BUFFER_SIZE = 64 * 1024
DEFAULT_BINARY_SAMPLE_SIZE = 8192


@dataclass
class RuntimeConfig:
    """
    Runtime configuration for package access.

    Attributes:
        copy_buffer_size: Chunk size used when decompressing ZIP members
        binary_sample_size: Number of leading bytes inspected by binary sniffing
        verbose: Emit debug logging
    """

    copy_buffer_size: int = DEFAULT_COPY_BUFFER_SIZE
    binary_sample_size: int = DEFAULT_BINARY_SAMPLE_SIZE

    # Debug
    verbose: bool = False

    def __post_init__(self):
        """Reject sizes that would stall copy loops."""
        if self.copy_buffer_size <= 0:
            raise ValueError(f"copy_buffer_size must be positive: {self.copy_buffer_size}")
        if self.binary_sample_size <= 0:
            raise ValueError(f"binary_sample_size must be positive: {self.binary_sample_size}")


def get_runtime_config(
    copy_buffer_size: int | None = None,
    binary_sample_size: int | None = None,
    verbose: bool = False,
) -> RuntimeConfig:
    """
    Create a runtime configuration with sensible defaults.

    Args:
        copy_buffer_size: Override the decompression chunk size
        binary_sample_size: Override the binary sniffing window
        verbose: Enable verbose output

    Returns:
        Configured RuntimeConfig instance
    """
    return RuntimeConfig(
        copy_buffer_size=copy_buffer_size or DEFAULT_COPY_BUFFER_SIZE,
        binary_sample_size=binary_sample_size or DEFAULT_BINARY_SAMPLE_SIZE,
        verbose=verbose,
    )


# Global config instance (can be set by the CLI)
_global_config: RuntimeConfig | None = None


def set_global_config(config: RuntimeConfig) -> None:
    """Set the global runtime configuration."""
    global _global_config
    _global_config = config


def get_global_config() -> RuntimeConfig:
    """Get the global runtime configuration, creating default if needed."""
    global _global_config
    if _global_config is None:
        _global_config = RuntimeConfig()
    return _global_config
