"""Tests for the reader session surface."""

import pytest

from sokudoku.core.config import Settings
from sokudoku.core.models import GroupingConfig, GroupingMode
from sokudoku.session import ReaderSession

pytestmark = pytest.mark.unit

TEXT = "「こんにちは」と母は言った。"


@pytest.fixture
def session(clock):
    s = ReaderSession(settings=Settings(RATE=600, MAX_CHUNK_LENGTH=4), clock=clock)
    yield s
    s.close()


class TestRebuild:
    """Any input change rebuilds chunks and resets playback."""

    def test_set_text_builds_chunks(self, session):
        session.set_text(TEXT)

        assert [c.surface for c in session.chunks] == ["「こんにちは」", "と母は", "言った。"]
        assert session.current_chunk.surface == "「こんにちは」"
        assert session.total_character_count == len(TEXT)

    def test_rebuild_stops_and_rewinds(self, session, clock):
        session.set_text(TEXT)
        session.start()
        clock.advance(0.15)
        session.step()
        assert session.current_index == 1

        session.set_grouping_config({"mode": "atomic"})

        assert not session.is_playing
        assert session.current_index == 0
        assert session.elapsed_seconds == 0.0
        assert session.grouping_config.mode is GroupingMode.ATOMIC
        assert session.grouping_config.max_chunk_length == 4

    def test_protected_terms_rebuild(self, session):
        session.set_text("銀河ステーション")
        session.set_grouping_config(GroupingConfig(mode="atomic"))
        session.set_protected_terms(["銀河ステーション", "", 42])

        assert session.protected_terms == ("銀河ステーション",)
        assert [c.surface for c in session.chunks] == ["銀河ステーション"]

    def test_default_protected_term(self, session):
        assert "カムパネルラ" in session.protected_terms

    def test_non_string_text_becomes_empty(self, session):
        session.set_text(None)

        assert session.chunks == ()
        assert session.current_chunk is None
        assert not session.start()


class TestConfigurationClamping:
    """Invalid configuration is clamped or ignored, never raised."""

    def test_zero_length_is_clamped(self, session):
        session.set_grouping_config({"max_chunk_length": 0})

        assert session.grouping_config.max_chunk_length == 1

    def test_unknown_mode_keeps_previous_config(self, session):
        before = session.grouping_config

        session.set_grouping_config({"mode": "sentence"})

        assert session.grouping_config == before

    def test_legacy_mode_name(self, session):
        session.set_grouping_config({"mode": "bunsetsu"})

        assert session.grouping_config.mode is GroupingMode.GROUPED

    @pytest.mark.parametrize("bad", [0, -10, "fast", None, float("nan")])
    def test_invalid_rate_clamps_to_minimum(self, session, bad):
        assert session.set_rate(bad) == 1.0
        assert session.rate == 1.0

    def test_valid_rate(self, session):
        assert session.set_rate(900) == 900.0

    def test_invalid_settings_rate(self, clock):
        s = ReaderSession(settings=Settings(RATE=-1, MIN_RATE=30), clock=clock)

        assert s.rate == 30.0
        s.close()

    def test_invalid_rate_policy_defaults_to_preserve(self, clock):
        s = ReaderSession(settings=Settings(RATE_CHANGE_POLICY="sometimes"), clock=clock)

        assert s.scheduler.rate_policy.value == "preserve"
        s.close()

    def test_unknown_segmenter_falls_back(self, clock):
        s = ReaderSession(settings=Settings(SEGMENTER="mecab", GROUPING_MODE="atomic"), clock=clock)
        s.set_text("hello world")

        assert [c.surface for c in s.chunks] == ["hello", "world"]
        s.close()


class TestPlayback:
    def test_seek_clamps(self, session):
        session.set_text(TEXT)

        assert session.seek(10) == 2
        assert session.seek(-1) == 0

    def test_play_to_end(self, session, clock):
        session.set_text(TEXT)
        session.start()

        for _ in range(40):
            clock.advance(1 / 60)
            session.step()

        assert not session.is_playing
        assert session.current_index == 0

    def test_state_snapshot(self, session):
        session.set_text(TEXT)
        session.seek(1)

        state = session.state()

        assert state.current_chunk == "と母は"
        assert state.rate == 600
        assert not state.is_playing


class TestInvalidInputNeverRaises:
    """Unusable arguments are clamped and logged at the session surface."""

    @pytest.mark.parametrize("bad", [None, "x", float("nan"), -float("inf"), object()])
    def test_unusable_seek_goes_to_start(self, session, bad):
        session.set_text(TEXT)
        session.seek(2)

        assert session.seek(bad) == 0
        assert session.current_index == 0

    def test_infinite_seek_goes_to_end(self, session):
        session.set_text(TEXT)

        assert session.seek(float("inf")) == 2

    def test_numeric_string_seek(self, session):
        session.set_text(TEXT)

        assert session.seek("1") == 1

    def test_infinite_length_is_clamped(self, session):
        session.set_grouping_config({"max_chunk_length": float("inf")})

        assert session.grouping_config.max_chunk_length == 1

    def test_unwritable_events_path(self, tmp_path, clock):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")

        s = ReaderSession(settings=Settings(EVENTS_PATH=str(blocker / "ev.ndjson")), clock=clock)
        s.set_text(TEXT)

        assert s.start()
        s.close()
