"""Tests for hex dumps and index reports."""

from io import StringIO

from rich.console import Console

from riftopen.core.entry import Polarity
from riftopen.pipeline import RiftSession, TransformResult
from riftopen.reporting import HexDumpRenderer, IndexReport, hex_dump, hex_rows


def make_console() -> Console:
    return Console(file=StringIO(), width=120, color_system=None)


class TestHexDump:
    """Plain hex dump formatting."""

    def test_upper_case_space_separated(self):
        assert hex_dump(bytes([0x0C, 0x4E, 0xFF])) == "0C 4E FF"

    def test_limit(self):
        assert hex_dump(bytes(range(100)), limit=3) == "00 01 02"
        assert len(hex_dump(bytes(range(100))).split()) == 64

    def test_no_limit(self):
        assert len(hex_dump(bytes(100), limit=None).split()) == 100

    def test_empty(self):
        assert hex_dump(b"") == ""

    def test_rows_carry_offsets(self):
        rows = hex_rows(bytes(range(20)), width=8)

        assert rows[0] == "00000000  00 01 02 03 04 05 06 07"
        assert rows[2] == "00000010  10 11 12 13"
        assert len(rows) == 3


class TestHexDumpRenderer:
    """Rendering a transform result."""

    def test_plain_render(self):
        console = make_console()
        result = TransformResult(output=bytes([0x0C, 0x4E]), polarity=Polarity.POSITIVE)

        HexDumpRenderer(console, limit=64).render(result)

        text = console.file.getvalue()
        assert "Encoded 2 bytes (polarity A)" in text
        assert "0C 4E" in text

    def test_panel_render_empty(self):
        console = make_console()
        result = TransformResult(output=b"", polarity=Polarity.NEGATIVE)

        HexDumpRenderer(console).render(result, panel=True)

        text = console.file.getvalue()
        assert "Encoded 0 bytes (polarity B)" in text
        assert "(empty)" in text


class TestIndexReport:
    """Rendering the index summary."""

    def test_summary_and_entries(self):
        session = RiftSession()
        session.encode(bytes([0x41, 0x42, 0x41]), True)
        session.mark_measurement(2, 0.1)
        console = make_console()

        IndexReport(session.index, console).render(entries=5)

        text = console.file.getvalue()
        assert "Position index" in text
        assert "Entries" in text
        assert "Pruned" in text
        assert "First 5 entries" in text
        assert "0C" in text

    def test_entries_hidden_by_default(self):
        session = RiftSession()
        session.encode(b"abcd", False)
        console = make_console()

        IndexReport(session.index, console).render()

        assert "entries" not in console.file.getvalue()
