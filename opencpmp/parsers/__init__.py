"""
Parsers module - instance file parsers.

Available Parsers:
-----------------
- Parser: Abstract base class for custom parsers
- CPMPParser: Parser for capacitated p-median (.cpmp) instances

Usage:
------
>>> from opencpmp.parsers import CPMPParser
>>>
>>> parser = CPMPParser()
>>> instance = parser.parse("data/p4_2.cpmp")
>>> print(instance.summary())
"""

from opencpmp.parsers.base import Parser, ParserConfig
from opencpmp.parsers.cpmp import CPMPParser

__all__ = [
    "Parser",
    "ParserConfig",
    "CPMPParser",
]
