from .markup import MarkupParser, parse_markup, strip_markup
from .scanner import (
    CueBlock,
    CueScanner,
    ScanResult,
    WebVttFormatError,
    WebVttStructureError,
    scan_cues,
)
