"""Tests for ffplay diagnostic scraping."""

from sonicradio.domain.playback.errors import FaultKind, StreamFault
from sonicradio.domain.playback.scrape import find_fault, find_title, scan_output

BANNER = (
    "Input #0, mp3, from 'http://radio.example/stream':\n"
    "  Metadata:\n"
    "    icy-name        : Example FM\n"
    "  Duration: N/A, start: 0.000000, bitrate: 128 kb/s\n"
)


class TestFindTitle:
    def test_no_marker(self):
        assert find_title(BANNER) == ""

    def test_single_marker(self):
        output = BANNER + "[mp3 @ 0x1] Metadata update for StreamTitle: Artist - Song  \n"
        assert find_title(output) == "Artist - Song"

    def test_latest_marker_wins(self):
        output = (
            BANNER
            + "Metadata update for StreamTitle: First Song\n"
            + "    nan M-A:  0.000 fd=   0 aq=   15KB vq=    0KB sq=    0B \r"
            + "Metadata update for StreamTitle: Second Song\n"
        )
        assert find_title(output) == "Second Song"

    def test_marker_without_newline_yet(self):
        output = BANNER + "Metadata update for StreamTitle: Partial Line"
        assert find_title(output) == "Partial Line"

    def test_title_stops_at_carriage_return(self):
        output = "Metadata update for StreamTitle: Song\r  12.3 M-A: 0.000\n"
        assert find_title(output) == "Song"

    def test_empty_title(self):
        assert find_title("Metadata update for StreamTitle:   \n") == ""


class TestFindFault:
    def test_clean_output(self):
        assert find_fault(BANNER) is None

    def test_not_found(self):
        output = "http://radio.example/x: Server returned 404 Not Found\nhttp://radio.example/x: File Not Found\n"
        fault = find_fault(output)
        assert isinstance(fault, StreamFault)
        assert fault.kind is FaultKind.NOT_FOUND
        assert str(fault) == "File Not Found"

    def test_resolve_failure_message_is_rest_of_line(self):
        output = "[tcp @ 0x2] Failed to resolve hostname nowhere.invalid: Name or service not known\n"
        fault = find_fault(output)
        assert fault.kind is FaultKind.RESOLVE_FAILED
        assert str(fault) == "Failed to resolve hostname nowhere.invalid: Name or service not known"

    def test_invalid_data(self):
        output = "http://x/: Invalid data found when processing input\n"
        assert find_fault(output).kind is FaultKind.INVALID_DATA


class TestScanOutput:
    def test_title_only(self):
        result = scan_output(BANNER + "Metadata update for StreamTitle: Now On Air\n")
        assert result.title == "Now On Air"
        assert result.fault is None

    def test_fault_wins_over_later_title(self):
        output = (
            "[tcp @ 0x2] Failed to resolve hostname a.invalid\n"
            + "Metadata update for StreamTitle: Should Not Show\n"
        )
        result = scan_output(output)
        assert result.title == ""
        assert result.fault.kind is FaultKind.RESOLVE_FAILED

    def test_empty_output(self):
        result = scan_output("")
        assert result.title == ""
        assert result.fault is None
