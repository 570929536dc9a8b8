"""
Tests for minutes tidying and Markdown rendering.
"""

from models import MeetingDetails, MinutesDocument, PipelineResult, Topic
from post_processing import count_action_items, render_markdown, tidy_minutes


def _result(topics, meeting=None):
    return PipelineResult(transcript="...", minutes=MinutesDocument(topics=topics), meeting=meeting)


class TestTidyMinutes:
    def test_strips_markers_and_whitespace(self):
        minutes = MinutesDocument(topics=[
            Topic(title="  Q3   budget ", key_points=["* Over by 5%", "2) Hiring frozen"], action_items=["-  Email finance"]),
        ])

        topic = tidy_minutes(minutes).topics[0]

        assert topic.title == "Q3 budget"
        assert topic.key_points == ["Over by 5%", "Hiring frozen"]
        assert topic.action_items == ["Email finance"]

    def test_drops_empty_topics_and_items(self):
        minutes = MinutesDocument(topics=[
            Topic(title="", key_points=[" "], action_items=[]),
            Topic(title="Roadmap", key_points=["", "Ship v2"], action_items=[]),
        ])

        tidied = tidy_minutes(minutes)

        assert [t.title for t in tidied.topics] == ["Roadmap"]
        assert tidied.topics[0].key_points == ["Ship v2"]

    def test_untitled_topic_with_content_is_kept(self):
        minutes = MinutesDocument(topics=[Topic(title="", key_points=["Misc"])])

        assert tidy_minutes(minutes).topics[0].title == "Untitled topic"

    def test_count_action_items(self):
        minutes = MinutesDocument(topics=[
            Topic(title="A", action_items=["one", "two"]),
            Topic(title="B"),
        ])

        assert count_action_items(minutes) == 2


class TestRenderMarkdown:
    def test_header_and_topics(self):
        meeting = MeetingDetails(client_name="Acme", meeting_title="Weekly sync", date="2026-10-17")
        result = _result(
            [Topic(title="Budget", key_points=["Discussed budget"], action_items=["Send proposal", "Book room"])],
            meeting,
        )

        markdown = render_markdown(result)

        assert markdown.startswith("# Weekly sync\n")
        assert "**Client:** Acme" in markdown
        assert "**Date:** October 17, 2026" in markdown
        assert "## Budget" in markdown
        assert "- Discussed budget" in markdown
        assert "1. Send proposal\n2. Book room" in markdown

    def test_action_items_section_only_when_present(self):
        markdown = render_markdown(_result([Topic(title="Intro", key_points=["Welcome"])]))

        assert "### Key Points" in markdown
        assert "### Action Items" not in markdown

    def test_defaults_without_meeting_details(self):
        markdown = render_markdown(_result([]))

        assert markdown.startswith("# Meeting Minutes\n")
        assert "No topics were identified" in markdown

    def test_unparseable_date_is_kept_verbatim(self):
        meeting = MeetingDetails(date="next Tuesday")

        assert "**Date:** next Tuesday" in render_markdown(_result([], meeting))
