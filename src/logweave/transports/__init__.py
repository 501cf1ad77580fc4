"""
Log transports: pluggable destinations for formatted entries.
"""

from .base import BaseTransport, Transport, TransportConfig
from .console import ConsoleTransport
from .file import FileTransport, RotationPolicy

__all__ = [
    "BaseTransport",
    "ConsoleTransport",
    "FileTransport",
    "RotationPolicy",
    "Transport",
    "TransportConfig",
]
