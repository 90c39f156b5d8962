from __future__ import annotations

import logging

from core import telemetry


def test_track_event_logs_structured_record(caplog):
    with caplog.at_level(logging.INFO, logger="telemetry"):
        event = telemetry.track_file_upload("stations.xlsx", 12)

    assert event == {"action": "file_upload", "category": "files", "label": "stations.xlsx", "value": 12}
    record = next(r for r in caplog.records if r.name == "telemetry")
    assert record.event == event
    assert record.getMessage() == "files/file_upload label=stations.xlsx value=12"


def test_helpers_fill_category_and_action():
    assert telemetry.track_export("csv", 3)["category"] == "results"
    assert telemetry.track_partition_view("TU - A", 4)["action"] == "partition_view"
    assert telemetry.track_file_delete("x.csv")["value"] is None
