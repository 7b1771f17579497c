"""
Log stream resource (``auth0_log_stream``).

The ``type`` attribute selects which group of ``sink`` attributes is sent
to the API; the sink mapper does the translation both ways.
"""

import logging
from typing import Any, Dict, List, Tuple

from management.client import ManagementError, is_not_found
from management.log_stream import LogStream, LogStreamStatus, LogStreamType
from resources.base import Resource, ResourceData, is_new_resource
from sink_mapper import from_remote, to_remote

logger = logging.getLogger(__name__)


def _string(**extra) -> Dict[str, Any]:
    return {"type": "string", **extra}


LOG_STREAM_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name", "type", "sink"],
    "additionalProperties": False,
    "properties": {
        "name": _string(minLength=1),
        "type": _string(
            enum=[t.value for t in LogStreamType],
            description="Type of the log stream, which indicates the sink provider",
            **{"x-force-new": True},
        ),
        "status": _string(
            enum=[s.value for s in LogStreamStatus],
            description="Status of the log stream",
            **{"x-computed": True},
        ),
        "sink": {
            "type": "array",
            "minItems": 1,
            "maxItems": 1,
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    # eventbridge
                    "aws_account_id": _string(writeOnly=True, **{"x-force-new": True}),
                    "aws_region": _string(writeOnly=True, **{"x-force-new": True}),
                    "aws_partner_event_source": _string(
                        readOnly=True,
                        description="Name of the Partner Event Source to be used with AWS",
                    ),
                    # eventgrid
                    "azure_subscription_id": _string(
                        writeOnly=True, **{"x-force-new": True}
                    ),
                    "azure_resource_group": _string(
                        writeOnly=True, **{"x-force-new": True}
                    ),
                    "azure_region": _string(writeOnly=True, **{"x-force-new": True}),
                    "azure_partner_topic": _string(
                        readOnly=True,
                        description="Name of the Partner Topic to be used with Azure",
                    ),
                    # http
                    "http_content_format": _string(enum=["JSONLINES", "JSONARRAY"]),
                    "http_content_type": _string(description="HTTP Content Type"),
                    "http_endpoint": _string(description="HTTP endpoint"),
                    "http_authorization": _string(writeOnly=True),
                    "http_custom_headers": {
                        "type": "array",
                        "items": {"type": "string"},
                        "uniqueItems": True,
                        "description": "Custom HTTP headers",
                    },
                    # datadog
                    "datadog_region": _string(),
                    "datadog_api_key": _string(writeOnly=True, **{"x-force-new": True}),
                    # splunk
                    "splunk_domain": _string(),
                    "splunk_token": _string(writeOnly=True),
                    "splunk_port": _string(),
                    "splunk_secure": {"type": "boolean"},
                },
            },
        },
    },
}


def expand_log_stream(d: ResourceData) -> LogStream:
    """Build the API log stream from declared configuration."""
    log_stream = LogStream(
        name=d.get_string("name"),
        type=d.get_string("type", is_new_resource()),
        status=d.get_string("status"),
    )

    tag = d.get_string("type")
    for element in d.get_list("sink"):
        log_stream.sink = to_remote(tag, element.to_dict())

    return log_stream


def flatten_log_stream_sink(d: ResourceData, log_stream: LogStream) -> List[Dict[str, Any]]:
    """
    Flatten the API sink into the declared ``sink`` block.

    Sensitive attributes the API does not echo back keep their declared
    value.
    """
    if log_stream.sink is None:
        return []
    _, bag = from_remote(log_stream.sink)

    declared = d.get_list("sink")
    if declared:
        sensitive = LogStreamResource.sink_sensitive_attributes()
        for key, value in declared[0].to_dict().items():
            if key in sensitive and key not in bag and value is not None:
                bag[key] = value

    return [bag]


class LogStreamResource(Resource):
    """Log stream resource handler."""

    @property
    def type_name(self) -> str:
        return "auth0_log_stream"

    @property
    def schema(self) -> Dict[str, Any]:
        return LOG_STREAM_SCHEMA

    @staticmethod
    def sink_sensitive_attributes() -> List[str]:
        properties = LOG_STREAM_SCHEMA["properties"]["sink"]["items"]["properties"]
        return [key for key, prop in properties.items() if prop.get("writeOnly")]

    def create(self, d: ResourceData, client) -> None:
        log_stream = expand_log_stream(d)
        client.log_streams.create(log_stream)
        d.set_id(log_stream.id)
        logger.info(f"Created log stream {log_stream.id} ({log_stream.name})")
        self.read(d, client)

    def read(self, d: ResourceData, client) -> None:
        try:
            log_stream = client.log_streams.read(d.id)
        except ManagementError as e:
            if is_not_found(e):
                logger.warning(f"Log stream {d.id} not found, removing from state")
                d.set_id("")
                return
            raise

        d.set_id(log_stream.id)
        d.set("name", log_stream.name)
        d.set("status", log_stream.status)
        d.set("type", log_stream.type)
        d.set("sink", flatten_log_stream_sink(d, log_stream))

    def update(self, d: ResourceData, client) -> None:
        log_stream = expand_log_stream(d)
        client.log_streams.update(d.id, log_stream)
        logger.info(f"Updated log stream {d.id}")
        self.read(d, client)

    def delete(self, d: ResourceData, client) -> None:
        try:
            client.log_streams.delete(d.id)
        except ManagementError as e:
            if is_not_found(e):
                logger.warning(f"Log stream {d.id} already deleted")
                d.set_id("")
                return
            raise
        logger.info(f"Deleted log stream {d.id}")
        d.set_id("")

    def list_remote(self, client) -> List[Tuple[str, str]]:
        return [(ls.id, ls.name or "") for ls in client.log_streams.list()]
