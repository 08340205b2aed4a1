# aicli/parsing/parser.py
from __future__ import annotations

import argparse

from aicli.constants import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT_SECS


def _build_parser() -> argparse.ArgumentParser:
    """
    Build the CLI argument parser.

    Notes:
        - Flags left unset stay ``None`` so that the config layering can tell
          "not given" apart from an explicit value.
        - Defaults shown in the help are the built-in ones; environment and
          config file values take precedence over them.
    """
    p = argparse.ArgumentParser(
        prog="ai-cli",
        formatter_class=argparse.RawTextHelpFormatter,
        usage="%(prog)s -p PROMPT [-f FILE] … [OPTIONS]",
        add_help=False,
        description=(
            "ai-cli – send a prompt, files and piped stdin to an "
            "OpenAI-compatible model and stream the answer.\n"
            "Input is sanitized before it leaves the machine and the answer "
            "is sanitized before it reaches the terminal."
        ),
    )

    g_in = p.add_argument_group("Input")
    g_model = p.add_argument_group("Model & endpoint")
    g_sec = p.add_argument_group("Safety")
    g_misc = p.add_argument_group("Miscellaneous")

    # -----------------------
    # Input
    # -----------------------
    g_in.add_argument(
        "-p",
        "--prompt",
        metavar="TEXT",
        dest="prompt",
        help="Prompt text. Falls back to default_prompt from the config file.",
    )
    g_in.add_argument(
        "-f",
        "--file",
        metavar="FILE",
        action="append",
        dest="files",
        default=[],
        help=(
            "Attach a file after the prompt. Repeatable; files are sent in the "
            "order given. PDF and HTML files are converted to text."
        ),
    )
    g_in.add_argument(
        "--no-stdin",
        action="store_true",
        dest="no_stdin",
        help="Ignore standard input even when something is piped in.",
    )

    # -----------------------
    # Model & endpoint
    # -----------------------
    g_model.add_argument(
        "-m",
        "--model",
        metavar="NAME",
        dest="model",
        help=f"Model name (default: {DEFAULT_MODEL}).",
    )
    g_model.add_argument(
        "--base-url",
        metavar="URL",
        dest="base_url",
        help=f"API base URL; /chat/completions is appended (default: {DEFAULT_BASE_URL}).",
    )
    g_model.add_argument(
        "--api-key",
        metavar="KEY",
        dest="api_key",
        help="Bearer token. Also read from AI_CLI_API_KEY or OPENAI_API_KEY.",
    )
    g_model.add_argument(
        "--temperature",
        metavar="FLOAT",
        type=float,
        dest="temperature",
        help="Sampling temperature in [0.0, 2.0]. Server default when omitted.",
    )
    g_model.add_argument(
        "--system",
        metavar="TEXT",
        dest="system_prompt",
        help="System prompt sent before the user message.",
    )
    g_model.add_argument(
        "--timeout",
        metavar="SECS",
        type=float,
        dest="timeout",
        help=(
            "Seconds to wait for the connection and the first bytes of the "
            f"answer (default: {DEFAULT_TIMEOUT_SECS:g})."
        ),
    )
    g_model.add_argument(
        "--stall-timeout",
        metavar="SECS",
        type=float,
        dest="stall_timeout",
        help="Abort when the stream goes silent for this long. Disabled by default.",
    )

    # -----------------------
    # Safety
    # -----------------------
    g_sec.add_argument(
        "--allow-dir",
        metavar="DIR",
        action="append",
        dest="allow_dir",
        help="Also accept -f files under DIR (the working directory is always allowed). Repeatable.",
    )
    g_sec.add_argument(
        "--no-escape-output",
        action="store_true",
        dest="no_escape_output",
        help=(
            "Do not backslash-escape shell substitutions in the answer; they "
            "are still reported. Terminal control sequences are always escaped."
        ),
    )

    # -----------------------
    # Misc
    # -----------------------
    g_misc.add_argument(
        "--config",
        metavar="PATH",
        dest="config",
        help="Config file (default: ~/.config/ai-cli/config.toml, or AI_CLI_CONFIG).",
    )
    g_misc.add_argument(
        "--json-logs",
        action="store_true",
        dest="json_logs",
        help="Emit logs in JSON format instead of plain text.",
    )
    g_misc.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        dest="verbose",
        help="More logging on stderr (-v info, -vv debug).",
    )
    g_misc.add_argument(
        "--version",
        action="store_true",
        dest="version",
        help="Print the version and exit.",
    )
    g_misc.add_argument(
        "-h",
        "--help",
        action="help",
        help="Show this help message and exit.",
    )

    return p
