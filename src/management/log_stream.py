"""
Log stream entities and API manager.

A log stream forwards tenant logs to one sink. The sink shape depends on the
stream type, so sinks are modelled as one dataclass per type and decoded by
reading the type tag first.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


class LogStreamType(Enum):
    """Supported log stream sink providers."""

    EVENTBRIDGE = "eventbridge"
    EVENTGRID = "eventgrid"
    HTTP = "http"
    DATADOG = "datadog"
    SPLUNK = "splunk"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["LogStreamType"]:
        """Return the member for a tag, or None for unknown tags."""
        try:
            return cls(value)
        except ValueError:
            return None


class LogStreamStatus(Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    SUSPENDED = "suspended"


@dataclass
class Sink:
    """Base class for log stream sinks."""

    stream_type: ClassVar[LogStreamType]

    # attribute name -> API field name
    wire_fields: ClassVar[Dict[str, str]] = {}

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for attr, key in self.wire_fields.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sink":
        return cls(**{attr: data.get(key) for attr, key in cls.wire_fields.items()})


@dataclass
class EventBridgeSink(Sink):
    stream_type: ClassVar[LogStreamType] = LogStreamType.EVENTBRIDGE
    wire_fields: ClassVar[Dict[str, str]] = {
        "account_id": "awsAccountId",
        "region": "awsRegion",
        "partner_event_source": "awsPartnerEventSource",
    }

    account_id: Optional[str] = None
    region: Optional[str] = None
    partner_event_source: Optional[str] = None


@dataclass
class EventGridSink(Sink):
    stream_type: ClassVar[LogStreamType] = LogStreamType.EVENTGRID
    wire_fields: ClassVar[Dict[str, str]] = {
        "subscription_id": "azureSubscriptionId",
        "resource_group": "azureResourceGroup",
        "region": "azureRegion",
        "partner_topic": "azurePartnerTopic",
    }

    subscription_id: Optional[str] = None
    resource_group: Optional[str] = None
    region: Optional[str] = None
    partner_topic: Optional[str] = None


@dataclass
class HTTPSink(Sink):
    stream_type: ClassVar[LogStreamType] = LogStreamType.HTTP
    wire_fields: ClassVar[Dict[str, str]] = {
        "endpoint": "httpEndpoint",
        "content_type": "httpContentType",
        "content_format": "httpContentFormat",
        "authorization": "httpAuthorization",
        "custom_headers": "httpCustomHeaders",
    }

    endpoint: Optional[str] = None
    content_type: Optional[str] = None
    content_format: Optional[str] = None
    authorization: Optional[str] = None
    custom_headers: Optional[List[str]] = None


@dataclass
class DatadogSink(Sink):
    stream_type: ClassVar[LogStreamType] = LogStreamType.DATADOG
    wire_fields: ClassVar[Dict[str, str]] = {
        "region": "datadogRegion",
        "api_key": "datadogApiKey",
    }

    region: Optional[str] = None
    api_key: Optional[str] = None


@dataclass
class SplunkSink(Sink):
    stream_type: ClassVar[LogStreamType] = LogStreamType.SPLUNK
    wire_fields: ClassVar[Dict[str, str]] = {
        "domain": "splunkDomain",
        "token": "splunkToken",
        "port": "splunkPort",
        "secure": "splunkSecure",
    }

    domain: Optional[str] = None
    token: Optional[str] = None
    port: Optional[str] = None
    secure: Optional[bool] = None


SINK_TYPES: Dict[LogStreamType, Type[Sink]] = {
    sink.stream_type: sink
    for sink in (EventBridgeSink, EventGridSink, HTTPSink, DatadogSink, SplunkSink)
}


def decode_sink(stream_type: Optional[str], data: Optional[Dict[str, Any]]) -> Optional[Sink]:
    """
    Decode an API sink payload using the stream type tag.

    Args:
        stream_type: The log stream's ``type`` field
        data: The raw ``sink`` object

    Returns:
        The typed sink, or None if the tag is unknown or there is no sink.
    """
    if data is None:
        return None
    tag = LogStreamType.parse(stream_type)
    if tag is None:
        logger.warning(f"Cannot decode sink for unsupported log stream type: {stream_type}")
        return None
    return SINK_TYPES[tag].from_dict(data)


@dataclass
class LogStream:
    """A log stream as exchanged with the management API."""

    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    sink: Optional[Sink] = None
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Request body; the id is never part of it."""
        data: Dict[str, Any] = {}
        for key in ("name", "type", "status"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.sink is not None:
            data["sink"] = self.sink.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogStream":
        known = {"id", "name", "type", "status", "sink"}
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            type=data.get("type"),
            status=data.get("status"),
            sink=decode_sink(data.get("type"), data.get("sink")),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def update_from(self, other: "LogStream") -> None:
        self.id = other.id
        self.name = other.name
        self.type = other.type
        self.status = other.status
        self.sink = other.sink
        self.extra = other.extra


class LogStreamManager:
    """Log stream endpoints of the management API."""

    path = "api/v2/log-streams"

    def __init__(self, client):
        self.client = client

    def create(self, log_stream: LogStream) -> LogStream:
        """Create a log stream; the passed object adopts the server response."""
        data = self.client.post(self.path, log_stream.to_dict())
        log_stream.update_from(LogStream.from_dict(data or {}))
        return log_stream

    def read(self, log_stream_id: str) -> LogStream:
        return LogStream.from_dict(self.client.get(f"{self.path}/{log_stream_id}") or {})

    def update(self, log_stream_id: str, log_stream: LogStream) -> LogStream:
        data = self.client.patch(f"{self.path}/{log_stream_id}", log_stream.to_dict())
        if data:
            log_stream.update_from(LogStream.from_dict(data))
        return log_stream

    def delete(self, log_stream_id: str) -> None:
        self.client.delete(f"{self.path}/{log_stream_id}")

    def list(self) -> List[LogStream]:
        return [LogStream.from_dict(item) for item in self.client.get(self.path) or []]
