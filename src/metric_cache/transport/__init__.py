"""Transports that deliver raw metric lines to the cache."""

from metric_cache.transport.syslog import (
    SyslogProtocol,
    open_syslog_endpoint,
    parse_syslog_frame,
)


__all__ = ["SyslogProtocol", "open_syslog_endpoint", "parse_syslog_frame"]
