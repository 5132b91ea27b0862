from .log_sink import DEFAULT_OWNER_URL_TEMPLATE, LogResultSink

__all__ = ["DEFAULT_OWNER_URL_TEMPLATE", "LogResultSink"]
