"""
Sink Mapper - translate between declared sink attributes and API sinks.

The declared ``sink`` block is a flat attribute bag whose meaningful keys are
selected by the log stream ``type``. to_remote() builds the typed sink for a
tag, from_remote() flattens a typed sink back into its bag.

Remote-computed attributes (partner event source, partner topic) are only
ever read back, never sent.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from management.log_stream import (
    DatadogSink,
    EventBridgeSink,
    EventGridSink,
    HTTPSink,
    LogStreamType,
    Sink,
    SplunkSink,
)

logger = logging.getLogger(__name__)

SINK_ATTRIBUTES: Dict[LogStreamType, Tuple[str, ...]] = {
    LogStreamType.EVENTBRIDGE: (
        "aws_account_id",
        "aws_region",
        "aws_partner_event_source",
    ),
    LogStreamType.EVENTGRID: (
        "azure_subscription_id",
        "azure_resource_group",
        "azure_region",
        "azure_partner_topic",
    ),
    LogStreamType.HTTP: (
        "http_endpoint",
        "http_content_type",
        "http_content_format",
        "http_authorization",
        "http_custom_headers",
    ),
    LogStreamType.DATADOG: ("datadog_region", "datadog_api_key"),
    LogStreamType.SPLUNK: (
        "splunk_domain",
        "splunk_token",
        "splunk_port",
        "splunk_secure",
    ),
}

COMPUTED_SINK_ATTRIBUTES = ("aws_partner_event_source", "azure_partner_topic")


def sink_attributes(tag: str) -> Tuple[str, ...]:
    """Attribute names owned by a stream type (empty for unknown tags)."""
    stream_type = LogStreamType.parse(tag)
    if stream_type is None:
        return ()
    return SINK_ATTRIBUTES[stream_type]


def _headers(value: Any) -> Optional[list]:
    if value is None:
        return None
    return list(value)


def to_remote(tag: str, bag: Mapping[str, Any]) -> Optional[Sink]:
    """
    Build the API sink for a stream type from a declared attribute bag.

    Args:
        tag: The log stream type
        bag: Flat sink attributes as declared

    Returns:
        The typed sink, or None if the type is not supported.
    """
    stream_type = LogStreamType.parse(tag)

    if stream_type is LogStreamType.EVENTBRIDGE:
        return EventBridgeSink(
            account_id=bag.get("aws_account_id"),
            region=bag.get("aws_region"),
        )
    if stream_type is LogStreamType.EVENTGRID:
        return EventGridSink(
            subscription_id=bag.get("azure_subscription_id"),
            resource_group=bag.get("azure_resource_group"),
            region=bag.get("azure_region"),
        )
    if stream_type is LogStreamType.HTTP:
        return HTTPSink(
            endpoint=bag.get("http_endpoint"),
            content_type=bag.get("http_content_type"),
            content_format=bag.get("http_content_format"),
            authorization=bag.get("http_authorization"),
            custom_headers=_headers(bag.get("http_custom_headers")),
        )
    if stream_type is LogStreamType.DATADOG:
        return DatadogSink(
            region=bag.get("datadog_region"),
            api_key=bag.get("datadog_api_key"),
        )
    if stream_type is LogStreamType.SPLUNK:
        return SplunkSink(
            domain=bag.get("splunk_domain"),
            token=bag.get("splunk_token"),
            port=bag.get("splunk_port"),
            secure=bag.get("splunk_secure"),
        )

    logger.warning(
        f"Log stream type '{tag}' is not supported by this provider, "
        "no sink will be configured. Please raise an issue to get it added."
    )
    return None


def from_remote(sink: Optional[Sink]) -> Tuple[Optional[str], Dict[str, Any]]:
    """
    Flatten an API sink into its stream type and attribute bag.

    Attributes the API did not return are left out of the bag.
    """
    if sink is None:
        return None, {}

    stream_type = sink.stream_type
    if stream_type is LogStreamType.EVENTBRIDGE:
        bag = {
            "aws_account_id": sink.account_id,
            "aws_region": sink.region,
            "aws_partner_event_source": sink.partner_event_source,
        }
    elif stream_type is LogStreamType.EVENTGRID:
        bag = {
            "azure_subscription_id": sink.subscription_id,
            "azure_resource_group": sink.resource_group,
            "azure_region": sink.region,
            "azure_partner_topic": sink.partner_topic,
        }
    elif stream_type is LogStreamType.HTTP:
        bag = {
            "http_endpoint": sink.endpoint,
            "http_content_type": sink.content_type,
            "http_content_format": sink.content_format,
            "http_authorization": sink.authorization,
            "http_custom_headers": _headers(sink.custom_headers),
        }
    elif stream_type is LogStreamType.DATADOG:
        bag = {
            "datadog_region": sink.region,
            "datadog_api_key": sink.api_key,
        }
    elif stream_type is LogStreamType.SPLUNK:
        bag = {
            "splunk_domain": sink.domain,
            "splunk_token": sink.token,
            "splunk_port": sink.port,
            "splunk_secure": sink.secure,
        }
    else:
        logger.warning(f"Unsupported sink type returned by the API: {stream_type}")
        return None, {}

    return stream_type.value, {k: v for k, v in bag.items() if v is not None}
