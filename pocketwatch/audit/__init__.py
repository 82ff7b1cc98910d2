"""Session event logging package."""

from pocketwatch.audit.logger import EventLogger, configure_logging

__all__ = ["EventLogger", "configure_logging"]
