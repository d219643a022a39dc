from __future__ import annotations

import json
import logging

from logifin.shared.logging import configure_logger, get_logger, log_event


def teardown_logger(name: str) -> None:
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_rotating_json_logs(tmp_path):
    logger_name = "test_rotation_logger"
    logger = configure_logger(
        logger_name,
        log_dir=str(tmp_path),
        log_format='json',
        console_output=False,
        max_bytes=256,
        backup_count=2,
    )

    for i in range(200):
        logger.info("log line %s", i)

    log_files = sorted(tmp_path.glob(f"{logger_name}.log*"))
    assert log_files, "expected rotated logs to exist"
    assert len(log_files) <= 3  # base + 2 backups
    teardown_logger(logger_name)


def test_log_event_writes_structured_fields(tmp_path):
    logger_name = "test_structured_logger"
    logger = get_logger(
        logger_name,
        {"logging": {"directory": str(tmp_path), "format": "json", "console_output": False}},
    )

    log_event(logger, "warning", message="express unavailable", phase="source.failed",
              source="express", reason="HTTP 502")

    line = (tmp_path / f"{logger_name}.log").read_text().strip().splitlines()[-1]
    record = json.loads(line)
    assert record["level"] == "WARNING"
    assert record["message"] == "express unavailable"
    assert record["phase"] == "source.failed"
    assert record["source"] == "express"
    teardown_logger(logger_name)
