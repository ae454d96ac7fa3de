"""
Utility Module
Drink API Client, Member Client, Tag Reader Driver, Config and Logger
"""

from .config import ConfigError, KioskConfig, load_config
from .drink_client import DrinkClient
from .logger import configure_logging, setup_logger
from .member_client import MemberClient
from .tag_reader import TagReader

__all__ = ['ConfigError', 'KioskConfig', 'load_config', 'DrinkClient', 'configure_logging',
           'setup_logger', 'MemberClient', 'TagReader']
