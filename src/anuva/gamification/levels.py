"""Level computation: every 100 XP is one level, starting at level 1."""

from __future__ import annotations

XP_PER_LEVEL = 100


def compute_level(experience_points: int) -> int:
    """Level for a given XP total. 0-99 XP is level 1."""
    return experience_points // XP_PER_LEVEL + 1


def level_info(experience_points: int) -> dict:
    """Level plus progress toward the next one, for dashboard display."""
    level = compute_level(experience_points)
    xp_into_level = experience_points - (level - 1) * XP_PER_LEVEL
    return {
        "level": level,
        "xp_into_level": xp_into_level,
        "xp_for_level": XP_PER_LEVEL,
        "next_level": level + 1,
        "xp_to_next_level": XP_PER_LEVEL - xp_into_level,
    }
