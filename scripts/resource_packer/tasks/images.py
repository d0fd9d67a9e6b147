"""
Image tasks: resizing, pre-blending and atlas packing.
"""

from ..errors import AtlasGenerationError, FlagError
from ..flags import FlagShape, first_match, has_keyword, last_match, matching_tokens
from ..resource import ResourceNode
from ..services.image import IMAGE_EXTENSIONS, ImageUtils
from .base import PackingContext, Task, TaskOutcome


def _image_format(node: ResourceNode) -> str:
    return "PNG" if node.has_extension("png") else "JPEG"


class ResizeTask(Task):
    """Resamples images flagged ``<W>x<H>`` to exactly that size."""

    expects = "PNG/JPEG files flagged <W>x<H>"
    produces = "the resized image, without the size flag"

    def operate(self, node: ResourceNode, context: PackingContext) -> TaskOutcome:
        if not node.has_extension(*IMAGE_EXTENSIONS) or node.parent is None:
            return self.skip(node)

        size = first_match(FlagShape.DIMENSIONS, node.flags)
        if size is None:
            return self.skip(node)

        outcome = self.claim(node)
        width, height = size
        if width <= 0 or height <= 0:
            return outcome.error(f"Size {width}x{height} must be bigger than 0.")

        image = ImageUtils.load_image(node.path)
        original_size = image.size
        resized = ImageUtils.resize_with_quality(image, (width, height))

        target = context.new_folder("resize") / self.output_name(
            node, drop=matching_tokens(FlagShape.DIMENSIONS, node.flags)
        )
        ImageUtils.save_image(resized, target, format=_image_format(node),
                              compress_level=context.config.compression_level)

        parent = node.parent
        with parent.mutation():
            parent.remove_child(node)
            parent.add_child(target)

        return outcome.debug(f"Resized from {original_size[0]}x{original_size[1]} to {width}x{height}.")


class PreBlendTask(Task):
    """
    Composites PNG images flagged ``bg#RRGGBBAA`` over that color.

    Like the font task, the last background flag wins.
    """

    expects = "PNG files flagged bg#<color>"
    produces = "the blended image, without background flags"

    def operate(self, node: ResourceNode, context: PackingContext) -> TaskOutcome:
        if not node.has_extension("png") or node.parent is None:
            return self.skip(node)

        tokens = matching_tokens(FlagShape.BACKGROUND, node.flags)
        if not tokens:
            return self.skip(node)

        outcome = self.claim(node)
        try:
            color = last_match(FlagShape.BACKGROUND, node.flags)
        except FlagError as e:
            return outcome.error(str(e))

        target = context.new_folder("preblend") / self.output_name(node, drop=tokens)
        image = ImageUtils.pre_blend(ImageUtils.load_image(node.path), color)
        ImageUtils.save_image(image, target, compress_level=context.config.compression_level)

        parent = node.parent
        with parent.mutation():
            parent.remove_child(node)
            parent.add_child(target)

        return outcome.debug(f"Pre-blended over #{color.to_hex()}.")


class PackTask(Task):
    """
    Packs the images of a directory flagged ``pack`` into one atlas page.

    Only direct image children are packed, under their base names. The
    atlas page is border-clamped and written next to a frame map.
    """

    expects = "directories flagged 'pack'"
    produces = "<dir>.png atlas page and <dir>.atlas frame map inside the directory"

    def operate(self, node: ResourceNode, context: PackingContext) -> TaskOutcome:
        if not node.is_directory or not has_keyword(node.flags, "pack"):
            return self.skip(node)

        outcome = self.claim(node)
        images = [child for child in node.children if child.has_extension(*IMAGE_EXTENSIONS)]
        if not images:
            return outcome.warning("Nothing to pack, directory has no images.")

        sprites = [(child.base_name, ImageUtils.ensure_rgba(ImageUtils.load_image(child.path)))
                   for child in images]
        try:
            result = context.atlas_generator.create_sprite_atlas(sprites)
        except AtlasGenerationError as e:
            return outcome.error(f"Packing failed: {e}")

        result.atlas = ImageUtils.clamp(result.atlas)

        folder = context.new_folder("pack")
        atlas_path = folder / f"{node.base_name}.png"
        frame_map_path = folder / f"{node.base_name}.atlas"
        ImageUtils.save_image(result.atlas, atlas_path, compress_level=context.config.compression_level)
        result.save_frame_map(frame_map_path, format=context.config.atlas_format)

        with node.mutation():
            for child in images:
                node.remove_child(child)
            node.add_child(atlas_path)
            node.add_child(frame_map_path)

        return outcome.info(
            f"Packed {len(images)} images into {result.atlas.width}x{result.atlas.height} "
            f"({result.metadata['layout_efficiency']:.0%} used)."
        )
