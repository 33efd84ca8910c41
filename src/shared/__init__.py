"""Shared utilities and configuration for FlowWatch."""

from src.shared.config import settings
from src.shared.logger import (
    FlowWatchLogger,
    get_logger,
    log_config_status,
    log_result_table,
    log_startup_banner,
)

__all__ = [
    # Config
    "settings",
    # Logger
    "FlowWatchLogger",
    "get_logger",
    "log_config_status",
    "log_result_table",
    "log_startup_banner",
]
