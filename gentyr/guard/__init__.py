"""Command and file-access guard for agent tool calls."""

from gentyr.guard.scanner import CommandScanner, ScanResult, extract_file_paths
from gentyr.guard.tokenizer import split_on_operators, tokenize

__all__ = [
    "CommandScanner",
    "ScanResult",
    "extract_file_paths",
    "split_on_operators",
    "tokenize",
]
