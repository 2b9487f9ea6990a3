from __future__ import annotations

from typing import Iterable

from .config import FormValues
from .extractor import ExtractedCommand, extract_test_commands


SIGNATURE_SEPARATOR = "|"


def signature_of(commands: Iterable[ExtractedCommand]) -> str:
    """Order-independent key over (category, trimmed command) pairs."""
    keys = sorted(f"{c.category}:{c.command.strip()}" for c in commands)
    return SIGNATURE_SEPARATOR.join(keys)


def command_signature(config: FormValues) -> str:
    """
    Equivalence key of a configuration's test phase.

    Two configurations with the same signature run the same test commands,
    so only one of them needs a matrix entry.
    """
    return signature_of(extract_test_commands(config))
