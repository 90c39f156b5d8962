"""
Usage telemetry.

Events are emitted as structured log records on the "telemetry" logger so
the deployment decides where they go (stdout, a log shipper, nowhere).
"""

import logging
from typing import Optional

telemetry_logger = logging.getLogger("telemetry")


def track_event(action: str, category: str, label: Optional[str] = None, value: Optional[float] = None) -> dict:
    """
    Record one usage event.

    Returns:
        The event payload (also attached to the log record as ``event``)
    """
    event = {
        "action": action,
        "category": category,
        "label": label,
        "value": value,
    }
    telemetry_logger.info(
        "%s/%s label=%s value=%s", category, action, label, value,
        extra={"event": event},
    )
    return event


def track_file_upload(file_name: str, row_count: int) -> dict:
    return track_event("file_upload", "files", label=file_name, value=row_count)


def track_file_delete(file_name: str) -> dict:
    return track_event("file_delete", "files", label=file_name)


def track_export(export_format: str, partition_count: int) -> dict:
    return track_event("export", "results", label=export_format, value=partition_count)


def track_partition_view(label: str, row_count: int) -> dict:
    return track_event("partition_view", "results", label=label, value=row_count)
