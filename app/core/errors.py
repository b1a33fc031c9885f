"""
Error taxonomy for the configuration editor core
"""
from typing import Optional


class ConfigEditorError(Exception):
    """Base class for all configuration editor errors"""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.key = key


class ConnectivityError(ConfigEditorError):
    """Store handle is absent, closed, or the driver refused the request"""


class StructuralMismatchError(ConfigEditorError):
    """Candidate and baseline row counts differ"""


class ValidationError(ConfigEditorError):
    """A value failed parse or range checks"""


class PersistenceError(ConfigEditorError):
    """A write failed or touched the wrong number of rows; the batch was rolled back"""
