"""System prompt for the fetch agent.

Prompt sections are stored as separate .txt files and composed in order.
The hardened policy adds the ``safety`` section; set SYSTEM_PROMPT in env to
override with a single custom prompt.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

BASE_SECTIONS = ("base",)
HARDENED_SECTIONS = ("base", "safety")


def _prompts_dir() -> Path:
    """Directory containing prompt .txt files (next to this __init__.py)."""
    return Path(__file__).resolve().parent


def _load_section(name: str) -> str:
    """Load a single prompt section by name (without .txt)."""
    path = _prompts_dir() / f"{name}.txt"
    if not path.exists():
        logger.warning("Prompt section not found: %s", path)
        return ""
    return path.read_text(encoding="utf-8").strip()


def build_system_prompt(
    *,
    section_order: tuple[str, ...] = HARDENED_SECTIONS,
    separator: str = "\n\n",
) -> str:
    """Build the system prompt by loading and joining prompt sections in order."""
    parts = [content for content in (_load_section(name) for name in section_order) if content]
    return separator.join(parts)


def get_system_prompt(override: str | None = None, hardened: bool = True) -> str:
    """Return the system prompt to prepend to every model call.

    Args:
        override: If set (e.g. from SYSTEM_PROMPT env), use this instead of the prompt files.
        hardened: Include the safety section forbidding private destinations.
    """
    if override and override.strip():
        return override.strip()
    return build_system_prompt(section_order=HARDENED_SECTIONS if hardened else BASE_SECTIONS)


__all__ = [
    "BASE_SECTIONS",
    "HARDENED_SECTIONS",
    "build_system_prompt",
    "get_system_prompt",
]
