"""Odoo point-of-sale daily closing sync."""

import logging

__version__ = "0.1.0"

# Custom TRACE level, available to every module logger as log.trace(...)
logging.TRACE = 5
logging.addLevelName(logging.TRACE, "TRACE")


def trace_method(self, msg, *args, **kwargs):
    if self.isEnabledFor(logging.TRACE):
        self._log(logging.TRACE, msg, args, **kwargs)


logging.Logger.trace = trace_method
