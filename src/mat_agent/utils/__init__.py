"""Utilities for the Mat AI agent."""

from mat_agent.utils.diff_generator import (
    detect_indentation,
    generate_unified_diff,
    regenerate_diff_body,
)
from mat_agent.utils.diff_normalizer import (
    convert_spaces_to_tabs,
    ensure_file_headers,
    extract_content_from_diff,
    is_full_file_diff,
    normalize_diff,
)
from mat_agent.utils.json_utils import parse_json_safe
from mat_agent.utils.paths import normalize_path

__all__ = [
    "convert_spaces_to_tabs",
    "detect_indentation",
    "ensure_file_headers",
    "extract_content_from_diff",
    "generate_unified_diff",
    "is_full_file_diff",
    "normalize_diff",
    "normalize_path",
    "parse_json_safe",
    "regenerate_diff_body",
]
