"""
Services layer for ME1 Save Utilities.
Handles save container decoding, encoding and file operations.
"""

from .me1_save import (
    Me1SaveGame,
    SaveHandler,
    SaveDataError,
)

__all__ = [
    'Me1SaveGame',
    'SaveHandler',
    'SaveDataError',
]
