# Tagger Session
# Configuration and the folder/selection facade driven by the CLI

from .config import ConfigManager
from .session import TaggerSession

__all__ = [
    'ConfigManager',
    'TaggerSession'
]
