"""
Tests for the .cpmp instance parser.

Run with: pytest tests/unit/test_parser.py -v
"""

import pytest

from opencpmp.parsers import CPMPParser
from opencpmp.parsers.base import ParserConfig


SMALL = """\
3 1
0 2 4
2 0 3
4 3 0
1 2 3
6 6 6
"""


class TestCPMPParser:
    """Tests for CPMPParser."""

    def test_parse_text(self):
        instance = CPMPParser().parse_text(SMALL, name="small")

        assert instance.name == "small"
        assert instance.num_locations == 3
        assert instance.num_clusters == 1
        assert instance.distances[1].tolist() == [2, 0, 3]
        assert instance.demands.tolist() == [1, 2, 3]
        assert instance.capacities.tolist() == [6, 6, 6]

    def test_parse_file(self, data_path):
        parser = CPMPParser()
        path = data_path / "p4_2.cpmp"

        assert parser.can_parse(path)
        instance = parser.parse(path)

        assert instance.name == "p4_2"
        assert instance.num_locations == 4
        assert instance.num_clusters == 2
        assert instance.distance(0, 1) == 1
        assert instance.total_demand == 4

    def test_blank_lines_ignored(self):
        text = "\n2 1\n\n0 1\n1 0\n\n1 1\n2 2\n\n"
        instance = CPMPParser().parse_text(text)
        assert instance.num_locations == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CPMPParser().parse(tmp_path / "missing.cpmp")

    def test_can_parse_rejects_other_suffix(self, tmp_path):
        path = tmp_path / "instance.txt"
        path.write_text(SMALL)
        assert not CPMPParser().can_parse(path)

    def test_truncated_file(self):
        text = "3 1\n0 2 4\n2 0 3\n"
        with pytest.raises(ValueError, match="unexpected end of file"):
            CPMPParser().parse_text(text)

    def test_short_row(self):
        text = "2 1\n0 1\n1\n1 1\n2 2\n"
        with pytest.raises(ValueError, match="expected 2"):
            CPMPParser().parse_text(text)

    def test_invalid_integer(self):
        text = "2 1\n0 1\n1 0\n1 x\n2 2\n"
        with pytest.raises(ValueError, match="invalid integer"):
            CPMPParser().parse_text(text)

    def test_non_positive_size(self):
        with pytest.raises(ValueError):
            CPMPParser().parse_text("0 1\n")

    def test_invalid_cluster_count(self):
        text = "2 3\n0 1\n1 0\n1 1\n2 2\n"
        with pytest.raises(ValueError):
            CPMPParser().parse_text(text)

    def test_extra_entries_warn(self):
        text = "2 1 9\n0 1\n1 0\n1 1\n2 2\n"
        with pytest.warns(UserWarning, match="extra entries"):
            instance = CPMPParser().parse_text(text)
        assert instance.num_clusters == 1

    def test_trailing_content_warns(self):
        text = SMALL + "7 7 7\n"
        with pytest.warns(UserWarning, match="trailing content"):
            CPMPParser().parse_text(text)

    def test_verbose_logging(self, data_path, capsys):
        parser = CPMPParser(ParserConfig(verbose=True))
        parser.parse(data_path / "p4_2.cpmp")
        out = capsys.readouterr().out
        assert "[CPMP] Read 4 locations, 2 clusters" in out
