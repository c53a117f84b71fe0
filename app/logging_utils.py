import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


class HealthCheckFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        return "/health" not in msg


def configure_logging(app):
    """Configure root logging from LOG_LEVEL and keep health checks out of the access log"""
    level = app.config.get('LOG_LEVEL', 'INFO')
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger('app').setLevel(level)
    logging.getLogger('werkzeug').addFilter(HealthCheckFilter())
