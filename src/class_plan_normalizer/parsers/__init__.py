"""
Parsers

Text-level stages of the pipeline: cleaning, header detection, timeline
parsing, type mapping and canonicalization.
"""

from .text_cleaner import clean_text
from .header_detector import HeaderMatch, detect_block_header
from .timeline_parser import TimelineItem, parse_timeline_item, is_metadata_line
from .type_mapper import map_type, infer_type
from .canonicalizer import canonicalize

__all__ = [
    "clean_text",
    "HeaderMatch",
    "detect_block_header",
    "TimelineItem",
    "parse_timeline_item",
    "is_metadata_line",
    "map_type",
    "infer_type",
    "canonicalize",
]
