"""Centralized logging configuration.
Call setup_logging() once at application startup.
"""

from __future__ import annotations

import io
import logging
import sys

_NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "urllib3": logging.WARNING,
    "openai": logging.WARNING,
    "groq": logging.WARNING,
    "chromadb": logging.WARNING,
    "sentence_transformers": logging.WARNING,
    "transformers": logging.WARNING,
    "fitz": logging.WARNING,
    "langchain": logging.INFO,
    "langchain_core": logging.INFO,
    "langchain_openai": logging.INFO,
    "langchain_groq": logging.INFO,
    "langgraph": logging.INFO,
}


def setup_logging(level: str = "INFO") -> None:
    """Configure pipeline logging on the root logger."""
    root = logging.getLogger()
    # Avoid duplicate handlers on repeated calls
    if root.handlers:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    # Unicode-safe stdout (box-drawing characters in the log format)
    stream = io.TextIOWrapper(
        sys.stdout.buffer, encoding="utf-8", errors="replace", line_buffering=True
    )
    handler = logging.StreamHandler(stream)
    handler.setLevel(numeric_level)

    formatter = logging.Formatter(
        fmt=(
            "\n%(asctime)s │ %(levelname)-8s │ %(name)s │ %(funcName)s:%(lineno)d\n"
            "  %(message)s"
        ),
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)

    for name, lib_level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(lib_level)
