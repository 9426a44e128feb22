"""Collaborators for the external eBOM to mBOM conversion engine."""

from bomconvert.engine.client import AIEngineClient, ConversionEngine, parse_conversion
from bomconvert.engine.merge import merge_conversion

__all__ = ["AIEngineClient", "ConversionEngine", "merge_conversion", "parse_conversion"]
