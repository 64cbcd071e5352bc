"""
Condensed text summary of recent health metrics, used as LLM prompt context.

Only the most recent records of each category are kept (last 7 for Oura,
first 10 Strava workouts since Strava returns newest first), so the prompt
stays small no matter how much data the client sends. Missing numeric fields
render as "N/A" so the model sees the gap instead of a silently shorter line.
The output is markdown-ish prose for the model, not a stable format.
"""
from typing import Any, Dict, List, Optional

OURA_LIMIT = 7
STRAVA_LIMIT = 10
NA = "N/A"

READINESS_CONTRIBUTORS = [
    ("hrv_balance", "HRV balance"),
    ("resting_heart_rate", "resting HR"),
    ("recovery_index", "recovery index"),
    ("sleep_balance", "sleep balance"),
    ("activity_balance", "activity balance"),
    ("body_temperature", "body temperature"),
]


def _records(category: Any) -> Optional[List[dict]]:
    """Accept the provider's {"data": [...]} envelope or a bare list."""
    if isinstance(category, dict):
        category = category.get("data")
    if isinstance(category, list):
        return [r for r in category if isinstance(r, dict)]
    return None


def _value(value: Any, unit: str = "") -> str:
    if value is None:
        return NA
    return f"{value}{unit}"


def _minutes(seconds: Any, unit: str = "min") -> str:
    if not isinstance(seconds, (int, float)):
        return NA
    return f"{round(seconds / 60)}{unit}"


def _day(record: dict, *keys: str) -> str:
    for key in keys:
        value = record.get(key)
        if value:
            return str(value).split("T")[0]
    return NA


def _sleep_lines(records: List[dict]) -> List[str]:
    return [f"- {_day(r, 'day')}: score {_value(r.get('score'))}" for r in records]


def _readiness_lines(records: List[dict]) -> List[str]:
    lines = []
    for r in records:
        line = f"- {_day(r, 'day')}: score {_value(r.get('score'))}"
        contributors = r.get("contributors")
        if isinstance(contributors, dict):
            parts = [f"{label} {_value(contributors.get(key))}" for key, label in READINESS_CONTRIBUTORS]
            line += f" ({', '.join(parts)})"
        lines.append(line)
    return lines


def _sleep_detail_lines(records: List[dict]) -> List[str]:
    return [
        f"- {_day(r, 'day', 'bedtime_start')}: "
        f"HRV {_value(r.get('average_hrv'), 'ms')}, "
        f"resting HR {_value(r.get('lowest_heart_rate'), 'bpm')}, "
        f"deep {_minutes(r.get('deep_sleep_duration'))}, "
        f"REM {_minutes(r.get('rem_sleep_duration'))}, "
        f"efficiency {_value(r.get('efficiency'), '%')}"
        for r in records
    ]


def _activity_lines(records: List[dict]) -> List[str]:
    return [
        f"- {_day(r, 'day')}: "
        f"{_value(r.get('steps'))} steps, "
        f"{_value(r.get('active_calories'))} active cal, "
        f"{_minutes(r.get('high_activity_time'))} high activity"
        for r in records
    ]


def _heart_rate_lines(samples: List[dict]) -> List[str]:
    # Samples arrive every few minutes; summarize per day instead of listing them
    by_day: Dict[str, List[float]] = {}
    for s in samples:
        bpm = s.get("bpm")
        if isinstance(bpm, (int, float)):
            by_day.setdefault(_day(s, "timestamp"), []).append(bpm)

    lines = []
    for day, values in list(by_day.items())[-OURA_LIMIT:]:
        avg = round(sum(values) / len(values))
        lines.append(f"- {day}: min {min(values)}bpm, avg {avg}bpm, max {max(values)}bpm ({len(values)} samples)")
    return lines


def format_workout(activity: dict) -> str:
    distance = activity.get("distance")
    km = f"{distance / 1000:.1f}km" if isinstance(distance, (int, float)) else NA
    line = (
        f"{_day(activity, 'start_date_local', 'start_date')}: "
        f"{activity.get('type') or activity.get('sport_type') or NA} - {activity.get('name') or NA}, "
        f"{km}, {_minutes(activity.get('moving_time'))}"
    )
    heart_rate = activity.get("average_heartrate")
    if heart_rate is not None:
        line += f", avg HR {round(heart_rate)}bpm" if isinstance(heart_rate, (int, float)) else f", avg HR {NA}"
    return line


OURA_SECTIONS = [
    ("sleep", "Sleep Scores", _sleep_lines),
    ("readiness", "Readiness Scores", _readiness_lines),
    ("sleepDetails", "Sleep Details", _sleep_detail_lines),
    ("activity", "Daily Activity", _activity_lines),
]


def format_health_context(oura: Optional[dict], strava: Optional[dict]) -> str:
    """
    Build the prompt context from client-supplied Oura and Strava bundles.
    Returns "" when no recognized category has any records.
    """
    oura = oura if isinstance(oura, dict) else {}
    strava = strava if isinstance(strava, dict) else {}
    sections = []

    for key, title, render in OURA_SECTIONS:
        records = _records(oura.get(key))
        if records is None:
            continue
        sections.append((f"{title} (last {OURA_LIMIT} days)", render(records[-OURA_LIMIT:])))

    samples = _records(oura.get("heartrate"))
    if samples is not None:
        sections.append((f"Heart Rate (last {OURA_LIMIT} days)", _heart_rate_lines(samples)))

    workouts = _records(strava.get("activities"))
    if workouts is not None:
        lines = [f"- {format_workout(a)}" for a in workouts[:STRAVA_LIMIT]]
        sections.append((f"Recent Workouts (last {STRAVA_LIMIT})", lines))

    # Empty categories are left out like absent ones
    sections = [(title, lines) for title, lines in sections if lines]
    if not sections:
        return ""

    parts = ["# Recent Health Data"]
    for title, lines in sections:
        parts.append(f"\n## {title}")
        parts.extend(lines)
    return "\n".join(parts)


def format_health_data(health_data: Optional[dict]) -> str:
    health_data = health_data if isinstance(health_data, dict) else {}
    return format_health_context(health_data.get("oura"), health_data.get("strava"))
