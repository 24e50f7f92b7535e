"""
Utility modules for the Aurora browser shell.
"""
from .event_logger import EventLogger, EventType, ShellEvent, get_event_logger, set_event_logger

__all__ = ["EventLogger", "EventType", "ShellEvent", "get_event_logger", "set_event_logger"]
