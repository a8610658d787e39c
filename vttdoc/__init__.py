from .domain import TEXT_TAG, Cue, CuesWithTiming, Element
from .document import CueContentHandle, Document, content_for_tag, load_document, parse_document
from .parser import MarkupParser, WebVttFormatError, WebVttStructureError, parse_markup
from .timeline import OutputOptions, Timeline, TimelineStateError, to_cues_with_timing
from .writer import WebVttWriter, format_document, write_document
