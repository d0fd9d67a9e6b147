"""
Font rasterization service.

``FontRasterizer.pack`` turns a font file into a descriptor followed by one
or more page images. The first returned path is always the descriptor.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set, Tuple

from PIL import Image, ImageDraw, ImageFont
from fontTools.ttLib import TTFont, TTLibError

from ..errors import AtlasGenerationError, ConversionError
from ..flags import Color, Outline, OutlineJoin, WHITE
from .atlas import AtlasConfig, AtlasLayoutEngine
from .descriptors import DescriptorWriter, FontDescriptor, GlyphEntry

logger = logging.getLogger(__name__)

@dataclass
class FontParameters:
    """Typed configuration of one font rasterization."""
    font_name: str
    size: int
    color: Color = WHITE
    outline: Optional[Outline] = None
    code_points: Optional[Set[int]] = None  # None means all available
    page_size: Tuple[int, int] = (1024, 1024)
    padding: int = 1


class FontRasterizer(ABC):
    """External font rasterization backend."""

    @abstractmethod
    def pack(self, source: Path, output_dir: Path, parameters: FontParameters) -> List[Path]:
        """
        Rasterize ``source`` into ``output_dir``.

        Returns:
            Descriptor path followed by page image paths, in page order

        Raises:
            ConversionError: If the font cannot be rasterized
        """


class PillowFontRasterizer(FontRasterizer):
    """Rasterizes TrueType/OpenType fonts with Pillow's FreeType binding."""

    def __init__(self, descriptor_writer: Optional[DescriptorWriter] = None):
        self.descriptor_writer = descriptor_writer or DescriptorWriter()

    def pack(self, source: Path, output_dir: Path, parameters: FontParameters) -> List[Path]:
        try:
            font = ImageFont.truetype(str(source), parameters.size)
        except OSError as e:
            raise ConversionError(f"Cannot load font {source}: {e}")

        stroke = parameters.outline.width if parameters.outline else 0
        if parameters.outline and parameters.outline.join is OutlineJoin.STRAIGHT:
            logger.debug(f"Pillow strokes have round joins, straight join ignored for {source.name}")

        code_points = self._select_code_points(source, parameters.code_points)
        glyphs, images = self._render_glyphs(font, code_points, parameters, stroke)

        engine = AtlasLayoutEngine(AtlasConfig(padding=parameters.padding, power_of_two=False))
        items = [(str(cp), image.width, image.height) for cp, image in images.items()]
        try:
            layouts = engine.pack_pages(items, parameters.page_size) if items else []
        except AtlasGenerationError as e:
            raise ConversionError(f"Cannot lay out glyphs of {source.name}: {e}")

        page_paths: List[Path] = []
        for page_index, layout in enumerate(layouts):
            page = Image.new('RGBA', parameters.page_size, (0, 0, 0, 0))
            for name, rect in layout.positions.items():
                glyph_image = images[int(name)]
                page.paste(glyph_image, (rect.x, rect.y), glyph_image)
                glyph = glyphs[int(name)]
                glyph.x, glyph.y, glyph.page = rect.x, rect.y, page_index

            suffix = "" if len(layouts) == 1 else f"_{page_index}"
            page_path = output_dir / f"{parameters.font_name}{suffix}.png"
            page.save(page_path, format="PNG")
            page_paths.append(page_path)

        ascent, descent = font.getmetrics()
        descriptor = FontDescriptor(
            face=parameters.font_name,
            size=parameters.size,
            line_height=ascent + descent + 2 * stroke,
            base=ascent + stroke,
            scale_w=parameters.page_size[0],
            scale_h=parameters.page_size[1],
            pages=[path.name for path in page_paths],
            glyphs=[glyphs[cp] for cp in code_points if cp in glyphs],
            padding=0,
            spacing=parameters.padding,
            outline=stroke,
        )
        descriptor_path = self.descriptor_writer.write_font(
            descriptor, output_dir / f"{parameters.font_name}.fnt"
        )

        logger.debug(f"Rasterized {len(descriptor.glyphs)} glyphs of {source.name} on {len(page_paths)} pages")
        return [descriptor_path] + page_paths

    def _select_code_points(self, source: Path, requested: Optional[Set[int]]) -> List[int]:
        """Restrict the request to the font's character map; no request means all of it."""
        try:
            font = TTFont(str(source), lazy=True)
            try:
                available = set(font.getBestCmap() or {})
            finally:
                font.close()
        except (TTLibError, OSError) as e:
            raise ConversionError(f"Cannot read character map of {source}: {e}")

        if requested is None:
            return sorted(available)

        missing = requested - available
        if missing:
            logger.debug(f"{source.name} lacks {len(missing)} requested glyphs, skipped")
        return sorted(requested & available)

    def _render_glyphs(self, font, code_points, parameters: FontParameters, stroke: int):
        glyphs = {}
        images = {}
        outline_fill = parameters.outline.color.rgba if parameters.outline else None

        for cp in code_points:
            char = chr(cp)
            left, top, right, bottom = font.getbbox(char, stroke_width=stroke)
            width, height = right - left, bottom - top
            glyphs[cp] = GlyphEntry(
                code_point=cp, x=0, y=0, width=max(width, 0), height=max(height, 0),
                xoffset=left, yoffset=top, xadvance=round(font.getlength(char)) + 2 * stroke,
            )

            if width <= 0 or height <= 0:
                continue

            image = Image.new('RGBA', (width, height), (0, 0, 0, 0))
            ImageDraw.Draw(image).text(
                (-left, -top), char, font=font, fill=parameters.color.rgba,
                stroke_width=stroke, stroke_fill=outline_fill,
            )
            images[cp] = image

        return glyphs, images
