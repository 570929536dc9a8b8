"""Post-processing for generated minutes.

Tidies the analysis output and renders the minutes document as Markdown,
laid out like the printed minutes: meeting header, then one section per
topic with its key points and numbered action items.
"""

import re
import logging
from datetime import date as date_type
from typing import List, Optional

from models import MeetingDetails, MinutesDocument, PipelineResult, Topic

logger = logging.getLogger(__name__)

_MULTI_SPACE = re.compile(r"\s+")
# Leading bullets/numbering the model sometimes adds to list items
_LIST_MARKER = re.compile(r"^(?:[-*•]|\d+[.)])\s+")


def _clean_item(text: str) -> str:
    text = _MULTI_SPACE.sub(" ", text).strip()
    return _LIST_MARKER.sub("", text)


def _clean_items(items: List[str]) -> List[str]:
    cleaned = [_clean_item(item) for item in items]
    return [item for item in cleaned if item]


def tidy_minutes(minutes: MinutesDocument) -> MinutesDocument:
    """Normalize whitespace, strip list markers and drop empty entries.

    Topics with no title, key points or action items left are removed.
    Order is preserved.
    """
    topics: List[Topic] = []
    dropped = 0
    for topic in minutes.topics:
        title = _clean_item(topic.title)
        key_points = _clean_items(topic.key_points)
        action_items = _clean_items(topic.action_items)
        if not (title or key_points or action_items):
            dropped += 1
            continue
        topics.append(Topic(title=title or "Untitled topic", key_points=key_points, action_items=action_items))

    if dropped:
        logger.info(f"Dropped {dropped} empty topics from minutes")
    return MinutesDocument(topics=topics)


def count_action_items(minutes: MinutesDocument) -> int:
    return sum(len(topic.action_items) for topic in minutes.topics)


def _format_date(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return date_type.fromisoformat(value).strftime("%B %d, %Y")
    except ValueError:
        return value


def render_markdown(result: PipelineResult) -> str:
    """Render minutes as Markdown. Action-item lists only appear when non-empty."""
    meeting = result.meeting or MeetingDetails()
    lines: List[str] = [f"# {meeting.meeting_title or 'Meeting Minutes'}", ""]

    if meeting.client_name:
        lines.append(f"**Client:** {meeting.client_name}  ")
    formatted_date = _format_date(meeting.date)
    if formatted_date:
        lines.append(f"**Date:** {formatted_date}  ")
    if meeting.client_name or formatted_date:
        lines.append("")

    if not result.minutes.topics:
        lines.append("_No topics were identified in this recording._")
        lines.append("")

    for topic in result.minutes.topics:
        lines.append(f"## {topic.title}")
        lines.append("")
        lines.append("### Key Points")
        lines.append("")
        lines.extend(f"- {point}" for point in topic.key_points)
        lines.append("")
        if topic.action_items:
            lines.append("### Action Items")
            lines.append("")
            lines.extend(f"{i}. {item}" for i, item in enumerate(topic.action_items, start=1))
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"
