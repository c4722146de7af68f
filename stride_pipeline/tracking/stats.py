"""
Weekly statistics over saved activity summaries.
"""
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pandas as pd

DAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
METRICS = ['steps', 'distance', 'calories', 'duration']


def _to_frame(activities: Iterable) -> pd.DataFrame:
    rows = [asdict(a) if is_dataclass(a) else dict(a) for a in activities]
    df = pd.DataFrame(rows, columns=None if rows else ['date'] + METRICS)
    for col in METRICS:
        if col not in df.columns:
            df[col] = 0
        df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0)
    # Dates are compared as UTC calendar days
    df['day'] = pd.to_datetime(df['date'], utc=True, format='ISO8601').dt.tz_localize(None).dt.normalize()
    return df


def weekly_stats(activities: Iterable, today: Optional[date] = None) -> dict:
    """
    Aggregate activities into the current Sunday-start week.

    Args:
        activities: ActivitySummary objects or dicts with date/steps/distance/calories/duration
        today: Reference day (defaults to today)

    Returns:
        Dictionary with weekly totals and one entry per day of the week
    """
    today = today or datetime.now().date()
    today_ts = pd.Timestamp(today)
    df = _to_frame(activities)

    recent = df[df['day'] >= today_ts - timedelta(days=7)]

    week_start = today_ts - timedelta(days=(today_ts.dayofweek + 1) % 7)
    per_day = recent.groupby('day')[['steps', 'distance', 'calories']].sum()

    days = []
    for i in range(7):
        day = week_start + timedelta(days=i)
        has_activity = day in per_day.index
        totals = per_day.loc[day] if has_activity else None
        days.append({
            'day': DAY_NAMES[i],
            'steps': int(totals['steps']) if has_activity else 0,
            'distance': float(totals['distance']) if has_activity else 0.0,
            'calories': float(totals['calories']) if has_activity else 0.0,
            'date': day.date().isoformat(),
            'has_activity': has_activity,
        })

    return {
        'total_steps': sum(d['steps'] for d in days),
        'total_distance': sum(d['distance'] for d in days),
        'total_calories': sum(d['calories'] for d in days),
        'total_duration': int(recent['duration'].sum()),
        'active_days': sum(1 for d in days if d['has_activity']),
        'days': days,
    }
