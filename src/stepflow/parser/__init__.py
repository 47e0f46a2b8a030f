"""
Flow source parser.
"""

from ..errors import ParseError
from .core import Parser, generate_flow_id, parse_flow
from .validator import has_errors, validate_flow

__all__ = ["Parser", "ParseError", "generate_flow_id", "has_errors", "parse_flow", "validate_flow"]
