"""Tests for the formatting module."""

from __future__ import annotations

from app.relaybot.messaging.formatting import MAX_DISCORD_LENGTH, chunk_message, clean_response


class TestCleanResponse:
    def test_think_block_removed(self) -> None:
        assert clean_response("<think>abc</think>Hello") == "Hello"

    def test_unterminated_think(self) -> None:
        assert clean_response("<think>unterminated") == ""

    def test_tags_stripped(self) -> None:
        assert clean_response("<b>Hi</b> there") == "Hi there"

    def test_multiline_think(self) -> None:
        assert clean_response("<think>\nstep 1\nstep 2\n</think>\n\nAnswer") == "Answer"

    def test_text_before_unterminated_think_kept(self) -> None:
        assert clean_response("Sure! <think>hmm") == "Sure!"

    def test_whitespace_trimmed(self) -> None:
        assert clean_response("   hello \n") == "hello"

    def test_none_and_empty(self) -> None:
        assert clean_response(None) == ""
        assert clean_response("") == ""

    def test_plain_text_passthrough(self) -> None:
        assert clean_response("meo meo 🐱") == "meo meo 🐱"


class TestChunkMessage:
    def test_empty(self) -> None:
        assert chunk_message("") == []

    def test_short_message(self) -> None:
        assert chunk_message("hello") == ["hello"]

    def test_lines_kept_together(self) -> None:
        assert chunk_message("line1\nline2\nline3") == ["line1\nline2\nline3"]

    def test_flushes_on_line_boundary(self) -> None:
        text = "\n".join(["a" * 1000, "b" * 1000, "c" * 500])
        chunks = chunk_message(text)
        assert chunks == ["a" * 1000, "b" * 1000 + "\n" + "c" * 500]

    def test_exact_limit_line(self) -> None:
        line = "x" * MAX_DISCORD_LENGTH
        assert chunk_message(line) == [line]

    def test_hard_split_long_line(self) -> None:
        chunks = chunk_message("x" * 4000)
        assert chunks == ["x" * 1900, "x" * 1900, "x" * 200]

    def test_hard_split_flushes_pending_chunk(self) -> None:
        chunks = chunk_message("intro\n" + "y" * 2000 + "\noutro")
        assert chunks == ["intro", "y" * 1900, "y" * 100, "outro"]

    def test_custom_max_len(self) -> None:
        chunks = chunk_message("aaaa\nbbbb\ncccc", max_len=9)
        assert chunks == ["aaaa\nbbbb", "cccc"]

    def test_every_chunk_within_limit_and_rejoins(self) -> None:
        lines = [("word " * n).strip() for n in range(1, 380, 7)]
        text = "\n".join(lines)
        chunks = chunk_message(text)
        assert all(len(c) <= MAX_DISCORD_LENGTH for c in chunks)
        assert "\n".join(chunks) == text

    def test_hard_split_pieces_rejoin_without_separator(self) -> None:
        line = "".join(chr(ord("a") + i % 26) for i in range(5000))
        chunks = chunk_message(line)
        assert all(len(c) <= MAX_DISCORD_LENGTH for c in chunks)
        assert "".join(chunks) == line
