import json
import logging

from rental_contracts.core.logging import build_formatter


def test_log_lines_are_json_with_event_fields(settings):
    record = logging.LogRecord(
        name="rental_contracts.services.expiration_sweeper",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="expiration_sweep_completed",
        args=(),
        exc_info=None,
    )
    record.expired = 2

    line = json.loads(build_formatter(settings).format(record))

    assert line["message"] == "expiration_sweep_completed"
    assert line["level"] == "INFO"
    assert line["logger"] == "rental_contracts.services.expiration_sweeper"
    assert line["service"] == settings.app_name
    assert line["expired"] == 2
