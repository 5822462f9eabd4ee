"""buildmate - cargo build wrapper with live progress and error grouping

Module-level initialization to ensure consistent console behavior across tools.
"""

from buildmate.util.console_utf8 import configure_utf8_console


__version__ = "0.1.0"

configure_utf8_console()
