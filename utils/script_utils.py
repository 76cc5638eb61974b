# utils/script_utils.py
"""
Utility functions for the collaborator permissions report's main script.
Includes helpers for file operations, token checks, and time formatting.
"""
import os
import json
import logging
from typing import Any, Optional

PLACEHOLDER_GITHUB_TOKEN = "YOUR_GITHUB_PAT"

# --- File Operations ---
def write_json_file(data: Any, filepath: str):
    """Writes `data` as JSON. Errors are logged and re-raised."""
    try:
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=4)
        logging.getLogger(__name__).info(f"Successfully wrote data to {filepath}")
    except Exception as e:
        logging.getLogger(__name__).error(f"Error writing JSON to {filepath}: {e}", exc_info=True)
        raise

# --- Token checks ---
def is_placeholder_token(token: Optional[str]) -> bool:
    """Checks if the GitHub token is missing or a known placeholder."""
    return not token or token == PLACEHOLDER_GITHUB_TOKEN

# --- Helper for Time Formatting ---
def format_duration(total_seconds: float) -> str:
    """Converts total seconds into a string of hours, minutes, and rounded seconds."""
    if total_seconds < 0:
        return "0 seconds"
    hours = int(total_seconds // 3600)
    remaining_seconds_after_hours = total_seconds % 3600
    minutes = int(remaining_seconds_after_hours // 60)
    final_seconds_float = remaining_seconds_after_hours % 60
    rounded_seconds = int(round(final_seconds_float))

    if rounded_seconds == 60:
        rounded_seconds = 0
        minutes += 1
        if minutes == 60:
            minutes = 0
            hours += 1

    parts = []
    if hours > 0: parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes > 0: parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if rounded_seconds > 0 or not parts or (hours > 0 or minutes > 0):
        parts.append(f"{rounded_seconds} second{'s' if rounded_seconds != 1 else ''}")

    return ", ".join(parts) if parts else "0 seconds"
