"""
Missions: XP, levels and study streaks (the `mission` synced store).

XP curve: reaching level L takes 50 * L * (L - 1) cumulative XP.
    Lv 2: 100 XP    Lv 10: 4,500 XP    Lv 100: 495,000 XP

Mission state is persisted as:
    {"lastActiveDate": ISO-8601, "currentStreak": int, "maxStreak": int,
     "dailyProgress": int, "dailyTarget": int, "totalXp": int}
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

BASE_XP = 50
MAX_LEVEL = 100
LEVELS_PER_STAGE = 10

STAGE_TITLES = [
    "로스쿨 신입생",
    "민법총칙 마스터",
    "판례 수집가",
    "형법 전문가",
    "모의고사 랭커",
    "졸업시험 합격자",
    "변호사시험 응시생",
    "수습 변호사",
    "파트너 변호사",
    "대법관",
]

XP_REWARDS = {
    "CORRECT_ANSWER": 10,
    "COMPLETE_QUIZ": 50,
    "PERFECT_SCORE": 100,
    "DAILY_GOAL": 150,
}


@dataclass(frozen=True)
class LevelInfo:
    level: int
    title: str
    xp_required: int  # cumulative XP to reach this level
    stage: int  # 0-based


def xp_for_level(level: int) -> int:
    if level <= 1:
        return 0
    return BASE_XP * level * (level - 1)


def _stage_for(level: int) -> int:
    return min((level - 1) // LEVELS_PER_STAGE, len(STAGE_TITLES) - 1)


def _info(level: int) -> LevelInfo:
    stage = _stage_for(level)
    return LevelInfo(level=level, title=STAGE_TITLES[stage], xp_required=xp_for_level(level), stage=stage)


def level_info(xp: int) -> LevelInfo:
    """Level reached with xp cumulative XP (clamped to 1..100)."""
    # Solve 50 * L * (L - 1) = xp for L
    level = math.floor((1 + math.sqrt(1 + 4 * (max(xp, 0) / BASE_XP))) / 2)
    return _info(max(1, min(level, MAX_LEVEL)))


def next_level_info(current_level: int) -> LevelInfo | None:
    if current_level >= MAX_LEVEL:
        return None
    return _info(current_level + 1)


def xp_reward(base_xp: int, current_level: int) -> int:
    """Scale a base reward by level: base * (1 + level^2 / 500)."""
    return round(base_xp * (1 + current_level * current_level / 500))


def scaled_xp_rewards(current_level: int) -> dict[str, int]:
    return {name: xp_reward(base, current_level) for name, base in XP_REWARDS.items()}


def initial_mission_state(now: datetime | None = None, daily_target: int = 30) -> dict[str, Any]:
    now = now or datetime.now()
    return {
        "lastActiveDate": now.isoformat(),
        "currentStreak": 0,
        "maxStreak": 0,
        "dailyProgress": 0,
        "dailyTarget": daily_target,
        "totalXp": 0,
    }


def quiz_xp(correct: int, total: int) -> int:
    """XP for a finished quiz: per correct answer plus a completion or perfect bonus."""
    earned = correct * XP_REWARDS["CORRECT_ANSWER"]
    if total > 0 and correct == total:
        earned += XP_REWARDS["PERFECT_SCORE"]
    elif total > 0:
        earned += XP_REWARDS["COMPLETE_QUIZ"]
    return earned


def _last_active_day(state: dict[str, Any]) -> date | None:
    raw = state.get("lastActiveDate")
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def register_activity(
    state: dict[str, Any],
    answered: int,
    correct: int,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Fold a finished quiz into the mission state.

    Updates the streak (consecutive active days), daily progress (reset on a
    new day), total XP and the daily goal bonus the first time the target is
    reached that day. Returns a new dict.
    """
    now = now or datetime.now()
    today = now.date()
    last = _last_active_day(state)

    streak = int(state.get("currentStreak", 0))
    progress = int(state.get("dailyProgress", 0))
    if last != today:
        streak = streak + 1 if last == today - timedelta(days=1) else 1
        progress = 0
    elif streak == 0:
        streak = 1

    target = int(state.get("dailyTarget", 30))
    earned = quiz_xp(correct, answered)
    if progress < target <= progress + answered:
        earned += XP_REWARDS["DAILY_GOAL"]

    return {
        **state,
        "lastActiveDate": now.isoformat(),
        "currentStreak": streak,
        "maxStreak": max(int(state.get("maxStreak", 0)), streak),
        "dailyProgress": progress + answered,
        "dailyTarget": target,
        "totalXp": int(state.get("totalXp", 0)) + earned,
    }
