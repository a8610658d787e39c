from .logger import configure_logging, get_logger
from .line_reader import LineReader
from .timestamps import format_timestamp_us, parse_timestamp_us
