"""
Conversion services invoked by tasks: image processing, atlas packing,
font rasterization and descriptor writing.
"""

from .atlas import AtlasConfig, AtlasGenerator, AtlasLayoutEngine, AtlasResult
from .descriptors import DescriptorWriter, FontDescriptor, GlyphEntry
from .fonts import FontParameters, FontRasterizer, PillowFontRasterizer
from .image import ImageUtils

__all__ = [
    "AtlasConfig",
    "AtlasGenerator",
    "AtlasLayoutEngine",
    "AtlasResult",
    "DescriptorWriter",
    "FontDescriptor",
    "GlyphEntry",
    "FontParameters",
    "FontRasterizer",
    "PillowFontRasterizer",
    "ImageUtils",
]
