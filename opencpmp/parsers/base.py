"""
Shared parser plumbing: configuration, line reading and verbose logging.

A parser turns one instance file into a CPMPInstance. Malformed content
raises ValueError; a missing file raises FileNotFoundError from open().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from opencpmp.core.instance import CPMPInstance


@dataclass
class ParserConfig:
    """
    Attributes:
        verbose: Print the sizes read from each file
        encoding: Text encoding of instance files
    """
    verbose: bool = False
    encoding: str = "utf-8"


class Parser(ABC):
    """Base class for instance file parsers."""

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()

    @abstractmethod
    def parse(self, path: Union[str, Path]) -> CPMPInstance:
        """Read an instance file."""

    @abstractmethod
    def can_parse(self, path: Union[str, Path]) -> bool:
        """Check whether the path is a file in this parser's format."""

    def get_format_name(self) -> str:
        return self.__class__.__name__.replace("Parser", "")

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(f"[{self.get_format_name()}] {message}")

    def _read_lines(self, path: Union[str, Path]) -> List[str]:
        # Stripped lines, blank ones included so line numbers stay valid
        with open(path, 'r', encoding=self.config.encoding) as f:
            return [line.strip() for line in f]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
