"""
Utility modules.
"""

from .config import Config, RAGConfig, load_config
from .logging import get_logger, set_log_level

__all__ = ["Config", "RAGConfig", "load_config", "get_logger", "set_log_level"]
