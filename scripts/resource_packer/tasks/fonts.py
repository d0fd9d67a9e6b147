"""
Font rasterization task.
"""

import sys
from pathlib import Path

from ..errors import ConversionError, FlagError
from ..flags import FlagShape, all_matches, first_match, match
from ..resource import ResourceNode
from ..services.fonts import FontParameters
from ..services.image import ImageUtils
from .base import PackingContext, Task, TaskOutcome

FONT_EXTENSIONS = ("ttf", "otf")


class CreateFontsTask(Task):
    """
    Rasterizes .ttf and .otf fonts.

    Flags::

        <N>                              size in pixels, mandatory, first match
        <S>-<E>                          add code points S to E inclusive, repeatable
        bg#RRGGBBAA                      background color, last match, default transparent
        fg#RRGGBBAA                      glyph color, first match, default white
        outline <W> RRGGBBAA [straight]  outline width, color and join, first match

    When no code points are requested, all available glyphs are rendered.
    The font is replaced by a descriptor and its page images, all named after
    the font's base name.
    """

    expects = "font files (.ttf, .otf) flagged with a pixel size"
    produces = "<base>.fnt descriptor and <base>.png page(s) in the font's directory"

    def operate(self, node: ResourceNode, context: PackingContext) -> TaskOutcome:
        if not node.has_extension(*FONT_EXTENSIONS):
            return self.skip(node)

        outcome = self.claim(node)
        parent = node.parent
        if parent is None:
            return outcome.error("Font has no parent directory.")

        size = first_match(FlagShape.SIZE, node.flags)
        if size is None:
            return outcome.debug("Not rasterizing font, size not specified.")
        if size <= 0:
            return outcome.error("Size must be bigger than 0.")

        parameters = self._build_parameters(node, size, context, outcome)
        background = self._scan(FlagShape.BACKGROUND, node, outcome, last=True)

        try:
            produced = [Path(path) for path in
                        context.font_rasterizer.pack(node.path, context.new_folder("font"), parameters)]
        except ConversionError as e:
            return outcome.error(f"Font rasterization failed: {e}")

        page_count = len(produced) - 1
        if page_count <= 0:
            outcome.warning("Font didn't render on any pages.")
        elif page_count > 1:
            outcome.warning(f"Font did render on {page_count} pages. This may cause problems when loading for UI skin.")

        save_kwargs = {"compress_level": context.config.compression_level}
        with parent.mutation():
            parent.remove_child(node)

            for path in produced:
                if path.suffix.lower() != ".png":
                    continue
                ImageUtils.clamp_image(path, **save_kwargs)
                if background is not None:
                    ImageUtils.pre_blend_image(path, background, **save_kwargs)

            for path in produced:
                added = parent.add_child(path)
                outcome.debug(f"Font file added: {added.name}")

        if background is not None:
            outcome.debug(f"Background color #{background.to_hex()} blended into pages.")
        outcome.info("Font created.")
        return outcome

    def _build_parameters(self, node: ResourceNode, size: int,
                          context: PackingContext, outcome: TaskOutcome) -> FontParameters:
        parameters = FontParameters(
            font_name=node.base_name,
            size=size,
            page_size=context.config.font_page_size,
        )

        outline = self._scan(FlagShape.OUTLINE, node, outcome)
        if outline is not None:
            parameters.outline = outline

        color = self._scan(FlagShape.FOREGROUND, node, outcome)
        if color is not None:
            parameters.color = color

        code_points = set()
        for start, end in all_matches(FlagShape.RANGE, node.flags):
            if start > end:
                outcome.warning(f"Glyph range {start}-{end} is empty, start is after end.")
                continue
            if end > sys.maxunicode:
                outcome.warning(f"Glyph range {start}-{end} goes past the last code point.")
                continue
            code_points.update(range(start, end + 1))
            outcome.debug(f"Added glyphs from {start} ({chr(start)!r}) to {end} ({chr(end)!r}).")

        if code_points:
            parameters.code_points = code_points

        return parameters

    def _scan(self, shape: FlagShape, node: ResourceNode, outcome: TaskOutcome, last: bool = False):
        """First (or last) valid parameter of a shape; malformed tokens are reported and skipped."""
        result = None
        for token in node.flags:
            try:
                value = match(shape, token)
            except FlagError as e:
                outcome.error(str(e))
                continue
            if value is not None:
                result = value
                if not last:
                    break
        return result
