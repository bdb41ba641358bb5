"""
Recipe Pipeline
===============

Loose inbound payload -> sanitized ``Recipe`` -> microdata + JSON-LD.
"""

from .block import parse_blocks, render_content, serialize_block
from .compiler import CompiledRecipe, build_json_ld, build_microdata, compile_recipe
from .duration import build_duration, format_duration, parse_duration
from .normalizer import normalize_recipe

__all__ = [
    "parse_blocks",
    "render_content",
    "serialize_block",
    "CompiledRecipe",
    "build_json_ld",
    "build_microdata",
    "compile_recipe",
    "build_duration",
    "format_duration",
    "parse_duration",
    "normalize_recipe",
]
