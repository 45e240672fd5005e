"""Core modules for debquery"""

from .compression import decompress
from .config import Config, load_config

__all__ = ['decompress', 'Config', 'load_config']
