# Shared utilities for Copysmith

from copysmith.utils.logging import configure_logging, get_logger
from copysmith.utils.file_ops import read_state_file, write_state_file
from copysmith.utils.datetime_utils import local_now, today_iso, next_local_midnight, parse_iso
from copysmith.utils.json_parser import extract_json_from_llm

__all__ = [
    "configure_logging", "get_logger",
    "read_state_file", "write_state_file",
    "local_now", "today_iso", "next_local_midnight", "parse_iso",
    "extract_json_from_llm",
]
