"""
Sparse offset index reading and bracket search.

Index files are scanned as a stream of (offset, position) entries, or
bisected through a memory map when the index is large.
"""

from klog.core.index.offset_index import IndexEntry, IndexEntryReader
from klog.core.index.search import Bracket, find_bracket, find_bracket_bisect

__all__ = [
    "IndexEntry",
    "IndexEntryReader",
    "Bracket",
    "find_bracket",
    "find_bracket_bisect",
]
