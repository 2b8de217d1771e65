"""
History helpers - search and date grouping for the session list.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from ..models import ChatSession

TODAY = "Today"
YESTERDAY = "Yesterday"
THIS_WEEK = "This Week"
THIS_MONTH = "This Month"
RELATIVE_GROUP_ORDER = [TODAY, YESTERDAY, THIS_WEEK, THIS_MONTH]


@dataclass
class SessionGroup:
    title: str
    sessions: List[ChatSession] = field(default_factory=list)


def search_sessions(sessions: List[ChatSession], query: str) -> List[ChatSession]:
    """Case-insensitive match on title or model id. A blank query matches everything."""
    needle = query.strip().lower()
    if not needle:
        return list(sessions)
    return [
        s for s in sessions
        if needle in s.display_title.lower() or needle in s.selected_model.lower()
    ]


def _group_title(updated_at: datetime, now: datetime) -> str:
    day = updated_at.astimezone(now.tzinfo).date() if updated_at.tzinfo else updated_at.date()
    today = now.date()

    if day == today:
        return TODAY
    if day == today - timedelta(days=1):
        return YESTERDAY
    if day.isocalendar()[:2] == today.isocalendar()[:2]:
        return THIS_WEEK
    if (day.year, day.month) == (today.year, today.month):
        return THIS_MONTH
    return f"{day.year:04d}-{day.month:02d}"


def group_sessions_by_date(
    sessions: List[ChatSession],
    now: Optional[datetime] = None,
) -> List[SessionGroup]:
    """
    Bucket sessions by how recently they were updated.

    Relative buckets come first (Today, Yesterday, This Week, This Month),
    then one bucket per older month, newest month first.
    """
    now = now or datetime.now(timezone.utc)

    grouped: Dict[str, List[ChatSession]] = {}
    for session in sessions:
        grouped.setdefault(_group_title(session.updated_at, now), []).append(session)

    relative_titles = [title for title in RELATIVE_GROUP_ORDER if title in grouped]
    # "YYYY-MM" titles sort chronologically as strings
    month_titles = sorted((t for t in grouped if t not in RELATIVE_GROUP_ORDER), reverse=True)

    return [
        SessionGroup(
            title=title,
            sessions=sorted(grouped[title], key=lambda s: s.updated_at, reverse=True),
        )
        for title in relative_titles + month_titles
    ]
