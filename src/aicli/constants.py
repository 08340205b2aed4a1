from __future__ import annotations

"""Project-wide constants used across modules.

This module isolates limits, defaults and exit codes to reduce cross-module
coupling. Tests import several of them directly.
"""

# Size ceilings (bytes of UTF-8)
SANITIZE_CEILING: int = 1024 * 1024
RAW_INPUT_CEILING: int = 4 * SANITIZE_CEILING

# Provenance delimiters used by the input assembler.
FILE_DELIM_FMT: str = '--- file: {label} ---'
STDIN_DELIM: str = '--- stdin ---'
SEGMENT_SEPARATOR: bytes = b'\n\n'

# Placeholders written by the inbound sanitizer.
CONTROL_PLACEHOLDER: str = '\ufffd'
TOKEN_PLACEHOLDER: str = '[filtered]'

# Security event bookkeeping
MAX_SECURITY_EVENTS: int = 100
EVENT_SAMPLE_CHARS: int = 40

# Request defaults
DEFAULT_MODEL: str = 'llama3'
DEFAULT_BASE_URL: str = 'http://localhost:11434/v1'
DEFAULT_TIMEOUT_SECS: float = 300.0
TEMPERATURE_RANGE: tuple[float, float] = (0.0, 2.0)
ERROR_BODY_LIMIT: int = 4096

# Exit codes
EXIT_OK: int = 0
EXIT_FAILURE: int = 1
EXIT_USAGE: int = 2
EXIT_INPUT: int = 3
EXIT_AUTH: int = 4
EXIT_RATE_LIMIT: int = 5
EXIT_NETWORK: int = 6
EXIT_SERVER: int = 7
EXIT_HTTP: int = 8
EXIT_MALFORMED_STREAM: int = 9
EXIT_INTERRUPTED: int = 130
