"""JSON formatter emitting Elastic Common Schema field names."""

from __future__ import annotations

import logging
import os
import traceback
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import jsonlogger

SERVICE_NAME = os.getenv("SERVICE_NAME", "storefront-api")

# ``extra=`` keys used across the code base and the ECS field each becomes
FIELD_MAP = {
    # request
    "request_id": "http.request.id",
    "http_request_method": "http.request.method",
    "http_status_code": "http.response.status_code",
    "url_path": "url.path",
    "url_query": "url.query",
    "user_agent": "user_agent.original",
    "client_ip": "client.ip",
    "event_duration": "event.duration",
    # identity
    "user_id": "user.id",
    "user_role": "user.roles",
    "auth_method": "authentication.method",
    "auth_failure_reason": "authentication.outcome.reason",
    "refresh_token_id": "session.id",
    # event
    "event_dataset": "event.dataset",
    "event_action": "event.action",
    "app_env": "service.environment",
    # errors
    "error_type": "error.type",
    "error_message": "error.message",
    "error_stack": "error.stack",
    "validation_error_count": "validation.error.count",
    "upstream_service": "service.target.name",
    # catalog and media
    "product_id": "storefront.product.id",
    "collection_id": "storefront.collection.id",
    "media_id": "storefront.media.id",
    "media_count": "storefront.media.count",
    "cdn_file_id": "storefront.media.cdn_file_id",
    "log_file": "file.name",
}


def _stack(record: logging.LogRecord) -> str | None:
    if not record.exc_info:
        return None
    return "".join(traceback.format_exception(*record.exc_info)).strip()


class ECSJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with ECS names for timestamp, level, service and mapped extras."""

    def __init__(self, *args: Any, service_name: str = SERVICE_NAME, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(
        self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_record.setdefault("@timestamp", created.isoformat())
        log_record.setdefault("message", record.getMessage())
        log_record["log.level"] = record.levelname
        log_record["log.logger"] = record.name
        log_record["service.name"] = self.service_name

        for attr, ecs_name in FIELD_MAP.items():
            value = log_record.pop(attr, getattr(record, attr, None))
            if value is not None:
                log_record[ecs_name] = value
        log_record.setdefault("event.dataset", f"{self.service_name}.app")
        if "error.stack" not in log_record and (stack := _stack(record)) is not None:
            log_record["error.stack"] = stack

        for key in list(log_record):
            value = log_record[key]
            if value is None:
                del log_record[key]
            elif isinstance(value, (set, frozenset, bytes)):
                log_record[key] = str(value)
