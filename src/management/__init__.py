"""
Management API client package.

Typed entities and a requests-based client for the log stream and hook
endpoints of the management API.
"""

from management.client import ManagementClient, ManagementError, is_not_found
from management.hook import Hook, HookManager, HookSecrets, MASKED_SECRET_VALUE
from management.log_stream import (
    DatadogSink,
    EventBridgeSink,
    EventGridSink,
    HTTPSink,
    LogStream,
    LogStreamManager,
    LogStreamStatus,
    LogStreamType,
    Sink,
    SplunkSink,
)

__all__ = [
    "ManagementClient",
    "ManagementError",
    "is_not_found",
    "Hook",
    "HookManager",
    "HookSecrets",
    "MASKED_SECRET_VALUE",
    "DatadogSink",
    "EventBridgeSink",
    "EventGridSink",
    "HTTPSink",
    "LogStream",
    "LogStreamManager",
    "LogStreamStatus",
    "LogStreamType",
    "Sink",
    "SplunkSink",
]
