"""Tests for grouped and atomic chunk composition."""

import pytest

from sokudoku.chunking.engine import build_chunks, compose
from sokudoku.core.models import Chunk, GroupingConfig, GroupingMode, Token

pytestmark = pytest.mark.unit


def surfaces(chunks):
    return [c.surface for c in chunks]


class TestGroupedComposition:
    """Greedy grouping with particles, punctuation and the length budget."""

    def test_dialogue_sentence(self):
        """Brackets bind their content; particles and the full stop attach."""
        chunks = build_chunks("「こんにちは」と母は言った。", GroupingConfig(max_chunk_length=4))

        assert surfaces(chunks) == ["「こんにちは」", "と母は", "言った。"]

    def test_chunks_carry_source_offsets(self):
        text = "「こんにちは」と母は言った。"
        chunks = build_chunks(text, GroupingConfig(max_chunk_length=4))

        for chunk in chunks:
            assert text[chunk.start : chunk.end] == chunk.surface
        assert [c.start for c in chunks] == [0, 7, 10]

    def test_budget_is_respected_without_dependents(self, make_tokens):
        tokens = make_tokens(list("東京都庁舎前駅"))

        chunks = compose(tokens, GroupingConfig(max_chunk_length=3))

        assert surfaces(chunks) == ["東京都", "庁舎前", "駅"]
        assert all(not c.forced for c in chunks)

    def test_dependent_overrides_budget(self, make_tokens):
        chunks = compose(make_tokens(["東京", "から"]), GroupingConfig(max_chunk_length=2))

        assert surfaces(chunks) == ["東京から"]
        assert chunks[0].forced
        assert chunks[0].token_count == 2

    def test_long_token_is_never_split(self, make_tokens):
        chunks = compose(make_tokens(["アイスクリーム", "を", "食べる"]), GroupingConfig(max_chunk_length=4))

        assert surfaces(chunks) == ["アイスクリームを", "食べる"]

    def test_opening_bracket_starts_new_chunk(self, make_tokens):
        chunks = compose(make_tokens(["母", "「", "あ", "」"]), GroupingConfig(max_chunk_length=10))

        assert surfaces(chunks) == ["母", "「あ」"]

    def test_interior_opening_bracket_splits(self, make_tokens):
        chunks = compose(make_tokens(["言う", "と「", "あ", "」"]), GroupingConfig(max_chunk_length=10))

        assert surfaces(chunks) == ["言うと", "「あ」"]

    def test_interior_closing_bracket_splits(self, make_tokens):
        chunks = compose(make_tokens(["「はい」です", "ね"]), GroupingConfig(max_chunk_length=10))

        assert surfaces(chunks) == ["「はい」", "ですね"]

    def test_trailing_closing_punctuation_stays_together(self, make_tokens):
        chunks = compose(make_tokens(["「", "はい", "」", "。", "次"]), GroupingConfig(max_chunk_length=10))

        assert surfaces(chunks) == ["「はい」。", "次"]

    def test_small_tsu_takes_next_character(self, make_tokens):
        chunks = compose(make_tokens(["まっ", "すぐ"]), GroupingConfig(max_chunk_length=3))

        assert surfaces(chunks) == ["まっす", "ぐ"]
        assert (chunks[0].start, chunks[0].end) == (0, 3)
        assert (chunks[1].start, chunks[1].end) == (3, 4)
        assert not chunks[0].forced

    def test_small_tsu_carry_marks_forced_when_over_budget(self, make_tokens):
        chunks = compose(make_tokens(["まっ", "すぐ"]), GroupingConfig(max_chunk_length=2))

        assert surfaces(chunks) == ["まっす", "ぐ"]
        assert chunks[0].forced

    def test_small_tsu_does_not_take_opening_bracket(self, make_tokens):
        chunks = compose(make_tokens(["まっ", "「", "あ", "」"]), GroupingConfig(max_chunk_length=10))

        assert surfaces(chunks) == ["まっ", "「あ」"]
        assert (chunks[1].start, chunks[1].end) == (2, 5)

    def test_blank_tokens_are_dropped(self, make_tokens):
        chunks = compose(make_tokens(["今日", " ", "は", "　", "晴れ"]), GroupingConfig(max_chunk_length=10))

        assert surfaces(chunks) == ["今日は晴れ"]
        assert (chunks[0].start, chunks[0].end) == (0, 7)

    def test_idempotent(self, make_tokens):
        tokens = make_tokens(["「", "はい", "」", "と", "言った", "。"])
        config = GroupingConfig(max_chunk_length=4)

        assert compose(tokens, config) == compose(tokens, config)


class TestAtomicComposition:
    """Atomic mode only filters blanks."""

    def test_one_chunk_per_token(self, make_tokens):
        chunks = compose(make_tokens(["今日", " ", "は", "晴れ"]), GroupingConfig(mode="atomic"))

        assert surfaces(chunks) == ["今日", "は", "晴れ"]
        assert all(c.token_count == 1 for c in chunks)

    def test_legacy_mode_name(self, make_tokens):
        config = GroupingConfig(mode="word")

        assert config.mode is GroupingMode.ATOMIC
        assert surfaces(compose(make_tokens(["母", "は"]), config)) == ["母", "は"]


class TestCompositionEdgeCases:
    """Degenerate inputs never raise."""

    def test_empty_tokens(self):
        assert compose([]) == []

    def test_only_blank_tokens(self, make_tokens):
        assert compose(make_tokens([" ", "\n"])) == []

    def test_malformed_tokens_degrade_to_atomic(self):
        tokens = [Token("あ", 0, 1), Token("い", 5, 6)]

        chunks = compose(tokens, GroupingConfig(max_chunk_length=10))

        assert chunks == [Chunk("あ", 0, 1), Chunk("い", 5, 6)]

    def test_empty_text(self):
        assert build_chunks("") == []

    def test_whitespace_only_text(self):
        assert build_chunks("  \n\t ") == []


class TestBuildChunks:
    """Full pipeline: segment, compose, protect."""

    def test_protected_term_survives_fine_segmentation(self, char_segmenter):
        text = "カムパネルラが手をあげました。"

        chunks = build_chunks(text, GroupingConfig(max_chunk_length=4), ["カムパネルラ"], char_segmenter)

        assert surfaces(chunks) == ["カムパネルラが手を", "あげました。"]

    def test_protected_term_alone_in_atomic_mode(self, char_segmenter):
        chunks = build_chunks("カムパネルラが", GroupingConfig(mode="atomic"), ["カムパネルラ"], char_segmenter)

        assert surfaces(chunks) == ["カムパネルラ", "が"]
        assert chunks[0].forced

    def test_unknown_segmenter_name_falls_back(self):
        chunks = build_chunks("hello world", GroupingConfig(mode="atomic"), segmenter="mecab")

        assert surfaces(chunks) == ["hello", "world"]

    def test_failing_segmenter_falls_back(self):
        from sokudoku.chunking.segmenters import CallableSegmenter

        def broken(text):
            raise RuntimeError("dictionary missing")

        chunks = build_chunks("a b", GroupingConfig(mode="atomic"), segmenter=CallableSegmenter(broken))

        assert surfaces(chunks) == ["a", "b"]

    def test_concatenation_matches_text_without_whitespace(self):
        text = "ジョバンニは、 カムパネルラと 銀河ステーションへ行った。"

        chunks = build_chunks(text, GroupingConfig(max_chunk_length=4), ["カムパネルラ"])

        assert "".join(surfaces(chunks)) == "".join(text.split())
