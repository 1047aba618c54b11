"""
CLI display modules.
"""

from cli.display.tables import (
    display_container_info,
    display_issues,
    display_memory_info,
)

__all__ = [
    "display_container_info",
    "display_issues",
    "display_memory_info",
]
