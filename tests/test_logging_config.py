import json
import logging

from flask.logging import default_handler

from crm_app.utils.logging_config import JSONFormatter, setup_logging


def _managed_handlers(logger):
    return [handler for handler in logger.handlers if getattr(handler, "_crm_managed_handler", False)]


def test_json_formatter_includes_extra_context():
    record = logging.LogRecord("crm_app.importer", logging.INFO, __file__, 10, "Import job queued", (), None)
    record.importer_job_id = 42

    payload = json.loads(JSONFormatter(app_name="Venue CRM").format(record))

    assert payload["message"] == "Import job queued"
    assert payload["level"] == "INFO"
    assert payload["app"] == "Venue CRM"
    assert payload["importer_job_id"] == 42
    assert "args" not in payload


def test_setup_logging_replaces_managed_handlers(app):
    app.config.update(LOG_LEVEL="warning", LOG_FORMAT="json", ENABLE_CONSOLE_LOGGING=True, ENABLE_FILE_LOGGING=False)

    setup_logging(app)
    setup_logging(app)

    handlers = _managed_handlers(app.logger)
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, JSONFormatter)
    assert app.logger.level == logging.WARNING
    assert logging.getLogger("crm_app").level == logging.WARNING


def test_setup_logging_writes_rotating_file(app, tmp_path):
    log_dir = tmp_path / "logs"
    app.config.update(LOG_FORMAT="text", ENABLE_CONSOLE_LOGGING=False, ENABLE_FILE_LOGGING=True, LOG_DIR=str(log_dir))

    setup_logging(app)
    app.logger.warning("file logging works")
    for handler in _managed_handlers(app.logger):
        handler.flush()

    assert "file logging works" in (log_dir / "application.log").read_text(encoding="utf-8")

    app.config["ENABLE_FILE_LOGGING"] = False
    setup_logging(app)


def test_setup_logging_drops_flask_default_handler(app):
    app.config.update(LOG_FORMAT="text", ENABLE_CONSOLE_LOGGING=True, ENABLE_FILE_LOGGING=False)

    setup_logging(app)

    assert default_handler not in app.logger.handlers
    assert len(app.logger.handlers) == 1
