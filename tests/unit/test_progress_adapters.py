"""
Tests for the in-process progress adapters.
"""

import logging

from adapters.local.callback_progress import CallbackProgressAdapter, CompositeProgressAdapter
from adapters.local.latest_progress import LatestProgressAdapter
from adapters.local.log_progress import LogProgressAdapter
from models import ProgressSnapshot, StageDetail


def test_callback_adapter_forwards_updates():
    received = []
    adapter = CallbackProgressAdapter(lambda *update: received.append(update))
    snapshot = ProgressSnapshot(converting=0.5)

    adapter.report("converting", snapshot)

    assert received == [("converting", snapshot, None)]


def test_composite_adapter_fans_out_in_order():
    order = []
    composite = CompositeProgressAdapter([
        CallbackProgressAdapter(lambda *update: order.append("first")),
        CallbackProgressAdapter(lambda *update: order.append("second")),
    ])

    composite.report("analyzing", ProgressSnapshot(analyzing=0.1))

    assert order == ["first", "second"]


class TestLatestProgressAdapter:
    def test_starts_empty(self):
        stage, snapshot, detail = LatestProgressAdapter().latest()

        assert stage is None
        assert snapshot == ProgressSnapshot()
        assert detail is None

    def test_keeps_detail_within_a_stage(self):
        adapter = LatestProgressAdapter()
        detail = StageDetail(stage="Processing audio", bitrate="128.0 kbps")

        adapter.report("converting", ProgressSnapshot(converting=0.2), detail)
        adapter.report("converting", ProgressSnapshot(converting=0.4))

        stage, snapshot, latest_detail = adapter.latest()
        assert stage == "converting"
        assert snapshot.converting == 0.4
        assert latest_detail == detail

    def test_clears_detail_on_stage_change(self):
        adapter = LatestProgressAdapter()
        adapter.report("converting", ProgressSnapshot(converting=1.0), StageDetail(format="wav"))

        adapter.report("transcribing", ProgressSnapshot(converting=1.0, transcribing=0.1))

        assert adapter.latest()[2] is None


class TestLogProgressAdapter:
    def test_logs_percent_once_per_change(self, caplog):
        adapter = LogProgressAdapter("meeting.mp3")

        with caplog.at_level(logging.INFO, logger="adapters.local.log_progress"):
            adapter.report("converting", ProgressSnapshot(converting=0.501))
            adapter.report("converting", ProgressSnapshot(converting=0.504))
            adapter.report("converting", ProgressSnapshot(converting=0.75))

        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["[meeting.mp3] converting 50%", "[meeting.mp3] converting 75%"]

    def test_includes_detail(self, caplog):
        adapter = LogProgressAdapter()

        with caplog.at_level(logging.INFO, logger="adapters.local.log_progress"):
            adapter.report("converting", ProgressSnapshot(converting=1.0), StageDetail(format="wav", size="1.0 KB"))

        assert caplog.records[0].getMessage() == "converting 100% - size=1.0 KB, format=wav"
