"""Tests for the local message board and grid layout."""

from __future__ import annotations

from roomrelay.core.board import NOTE_MAX_LENGTH, Board, board_layout
from roomrelay.models.enums import MessageKind, Sender
from tests.conftest import make_message


class TestBoard:
    def test_add_prepends(self) -> None:
        board = Board()
        board.add(make_message(id=1))
        board.add(make_message(id=2))
        assert [m.id for m in board] == [2, 1]
        assert len(board) == 2

    def test_add_ignores_duplicates(self) -> None:
        board = Board()
        assert board.add(make_message(id=1)) is True
        assert board.add(make_message(id=1)) is False
        assert len(board) == 1

    def test_duplicate_of_own_message_keeps_mine(self) -> None:
        board = Board()
        mine = make_message(id=1)
        mine.sender = Sender.MINE
        board.add(mine)
        board.add(make_message(id=1))
        assert board.get(1).sender == Sender.MINE

    def test_own_copy_upgrades_fanned_out_message(self) -> None:
        board = Board()
        board.add(make_message(id=1))
        mine = make_message(id=1)
        mine.sender = Sender.MINE
        board.add(mine)
        assert len(board) == 1
        assert board.get(1).sender == Sender.MINE

    def test_replace_uses_given_order(self) -> None:
        board = Board()
        board.add(make_message(id=9))
        board.replace([make_message(id=3), make_message(id=2), make_message(id=1)])
        assert [m.id for m in board.messages] == [3, 2, 1]
        assert board.get(9) is None

    def test_replace_keeps_affinity(self) -> None:
        board = Board()
        mine = make_message(id=5)
        mine.sender = Sender.MINE
        board.add(mine)
        board.replace([make_message(id=6), make_message(id=5)])
        assert board.get(5).sender == Sender.MINE
        assert board.get(6).sender == Sender.OTHER

    def test_replace_drops_duplicate_rows(self) -> None:
        board = Board()
        board.replace([make_message(id=1), make_message(id=1)])
        assert len(board) == 1

    def test_clear(self) -> None:
        board = Board()
        board.add(make_message(id=1))
        board.clear()
        assert board.messages == []
        assert board.get(1) is None

    def test_messages_is_a_copy(self) -> None:
        board = Board()
        board.add(make_message(id=1))
        board.messages.clear()
        assert len(board) == 1


class TestLayout:
    def test_notes_first(self) -> None:
        note = make_message(id=1, content="short")
        long_text = make_message(id=2, content="x" * NOTE_MAX_LENGTH)
        link = make_message(id=3, kind=MessageKind.LINK, content="https://a.io")
        other_note = make_message(id=4, content="hi")

        ordered = board_layout([long_text, note, link, other_note])
        assert [m.id for m in ordered] == [1, 4, 2, 3]

    def test_empty(self) -> None:
        assert board_layout([]) == []
