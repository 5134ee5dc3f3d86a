"""UI configuration constants.

Centralizes magic numbers and configuration values for the UI module.
"""

from enum import IntEnum


class LogLevel(IntEnum):
    """Severity of a debug-callback line.

    Members are named after the ``level`` strings the session hands to its
    debug callback, ordered so the log panel can hide anything below its
    threshold.
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    @classmethod
    def from_string(cls, level: str) -> "LogLevel":
        """Parse a callback level or --log-level value. Unknown names show everything."""
        if level.lower() == "warn":
            return cls.WARNING
        return cls.__members__.get(level.upper(), cls.DEBUG)


# Input history configuration
INPUT_HISTORY_MAX_SIZE = 100

# Log panel configuration
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500  # Characters before truncating log messages

# Notifications
ERROR_NOTIFY_TIMEOUT = 6  # Seconds an error notification stays visible
INFO_NOTIFY_TIMEOUT = 2

# Settings dialog model choices (value, label)
KNOWN_MODELS = [
    ("gpt-3.5-turbo", "GPT-3.5 Turbo"),
    ("gpt-4", "GPT-4"),
    ("gpt-4-turbo-preview", "GPT-4 Turbo"),
]

# Transcript export
TRANSCRIPT_EXPORT_NAME = "assistant-transcript.md"
