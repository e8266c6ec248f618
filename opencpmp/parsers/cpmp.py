"""
Parser for capacitated p-median instance files.

File Format:
-----------
Plain text, whitespace-separated non-negative integers:

    <nlocations> <nclusters>
    <row 1 of the distance matrix: nlocations entries>
    ...
    <row nlocations>
    <demands: nlocations entries>
    <capacities: nlocations entries>

Row i of the distance matrix holds the cost of serving location i from
each median. Blank lines are ignored. Extra tokens at the end of a line,
and non-blank lines after the capacities, are ignored with a UserWarning.
"""

import warnings
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from opencpmp.core.instance import CPMPInstance
from opencpmp.parsers.base import Parser, ParserConfig


class CPMPParser(Parser):
    """
    Parser for the .cpmp text format.

    Example:
        >>> parser = CPMPParser()
        >>> instance = parser.parse("data/p4_2.cpmp")
        >>> print(instance.summary())
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        """Initialize parser."""
        super().__init__(config)

    def can_parse(self, path: Union[str, Path]) -> bool:
        """
        Check if the path is a .cpmp file.

        Args:
            path: Path to instance file

        Returns:
            True for existing files with a .cpmp suffix
        """
        path = Path(path)
        return path.is_file() and path.suffix == ".cpmp"

    def parse(self, path: Union[str, Path]) -> CPMPInstance:
        """
        Parse a .cpmp instance file.

        Args:
            path: Path to the instance file

        Returns:
            Constructed CPMPInstance (named after the file stem)

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is malformed
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Instance file not found: {path}")

        self._log(f"Reading {path}")
        instance = self._parse_lines(self._read_lines(path), name=path.stem, source=str(path))
        self._log(
            f"Read {instance.num_locations} locations, "
            f"{instance.num_clusters} clusters"
        )
        return instance

    def parse_text(self, text: str, name: Optional[str] = None) -> CPMPInstance:
        """
        Parse an instance from a string.

        Args:
            text: File contents
            name: Optional instance name

        Returns:
            Constructed CPMPInstance

        Raises:
            ValueError: If the text is malformed
        """
        lines = [line.strip() for line in text.splitlines()]
        return self._parse_lines(lines, name=name, source=name or "<string>")

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _parse_lines(
        self,
        lines: List[str],
        name: Optional[str],
        source: str,
    ) -> CPMPInstance:
        records = self._records(lines)

        n, p = self._read_record(records, 2, "header", source)
        if n < 1:
            raise ValueError(f"{source}: number of locations must be positive, got {n}")

        distances = [
            self._read_record(records, n, f"distance row {i + 1}", source)
            for i in range(n)
        ]
        demands = self._read_record(records, n, "demands", source)
        capacities = self._read_record(records, n, "capacities", source)

        for lineno, _ in records:
            warnings.warn(
                f"{source}:{lineno}: ignoring trailing content after capacities",
                UserWarning,
            )
            break

        return CPMPInstance(
            distances=distances,
            demands=demands,
            capacities=capacities,
            num_clusters=p,
            name=name,
        )

    def _records(self, lines: List[str]) -> Iterator[Tuple[int, List[str]]]:
        """Yield (line number, tokens) for every non-blank line."""
        for lineno, line in enumerate(lines, start=1):
            tokens = line.split()
            if tokens:
                yield lineno, tokens

    def _read_record(
        self,
        records: Iterator[Tuple[int, List[str]]],
        count: int,
        what: str,
        source: str,
    ) -> List[int]:
        try:
            lineno, tokens = next(records)
        except StopIteration:
            raise ValueError(f"{source}: unexpected end of file, expected {what}") from None

        if len(tokens) < count:
            raise ValueError(
                f"{source}:{lineno}: {what} has {len(tokens)} entries, expected {count}"
            )
        if len(tokens) > count:
            warnings.warn(
                f"{source}:{lineno}: ignoring {len(tokens) - count} extra entries in {what}",
                UserWarning,
            )

        values = []
        for token in tokens[:count]:
            try:
                values.append(int(token))
            except ValueError:
                raise ValueError(
                    f"{source}:{lineno}: invalid integer {token!r} in {what}"
                ) from None
        return values
