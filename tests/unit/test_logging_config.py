"""Tests for logging configuration."""

from loguru import logger as root_logger

from shorts_factory.core.logging_config import NO_JOB, get_logger, setup_logging


def capture(messages):
    return root_logger.add(messages.append, format="{extra[job_id]}|{message}", level="DEBUG")


def test_bound_job_id_appears_in_records():
    setup_logging(log_level="DEBUG")
    messages = []
    sink = capture(messages)
    try:
        get_logger(__name__, job_id="abc123").info("rendering")
        get_logger(__name__).info("startup")
    finally:
        root_logger.remove(sink)

    assert messages[0].strip() == "abc123|rendering"
    assert messages[1].strip() == f"{NO_JOB}|startup"


def test_file_sink_is_created(tmp_path):
    log_file = tmp_path / "logs" / "compose.log"
    setup_logging(log_level="INFO", log_file=log_file)
    try:
        get_logger(__name__, job_id="job42").info("written to file")
        root_logger.complete()
    finally:
        setup_logging()

    assert "job42" in log_file.read_text(encoding="utf-8")
