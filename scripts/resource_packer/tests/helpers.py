"""
Shared builders for task and pipeline tests.
"""

from pathlib import Path
from typing import Optional, Tuple
from unittest.mock import MagicMock

from PIL import Image

from ..config import PackerConfig
from ..resource import ResourceTree
from ..services.atlas import AtlasConfig, AtlasGenerator
from ..services.descriptors import DescriptorWriter
from ..tasks.base import PackingContext


def write_image(path: Path, size: Tuple[int, int] = (8, 8),
                color: Tuple[int, int, int, int] = (255, 0, 0, 255)) -> Path:
    """Write a solid RGBA (or RGB for .jpg) test image."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in (".jpg", ".jpeg"):
        Image.new("RGB", size, color[:3]).save(path, format="JPEG")
    else:
        Image.new("RGBA", size, color).save(path, format="PNG")
    return path


def write_file(path: Path, content: str = "data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def make_context(tree: ResourceTree, config: Optional[PackerConfig] = None,
                 font_rasterizer=None, atlas_generator=None) -> PackingContext:
    """Context over a started tree; unspecified services are mocks or defaults."""
    config = config or PackerConfig()
    return PackingContext(
        tree=tree,
        config=config,
        font_rasterizer=font_rasterizer or MagicMock(),
        atlas_generator=atlas_generator or AtlasGenerator(AtlasConfig(
            padding=config.atlas_padding,
            power_of_two=config.atlas_power_of_two,
            max_size=config.atlas_max_size,
        )),
        descriptor_writer=DescriptorWriter(),
    )


def names(node) -> list:
    return [child.name for child in node.children]


def stub_rasterizer(page_count=1, extra_paths=()):
    """Rasterizer mock writing a descriptor and half transparent red pages."""

    def pack(source, output_dir, parameters):
        descriptor = write_file(output_dir / f"{parameters.font_name}.fnt", "info")
        pages = []
        for index in range(page_count):
            suffix = "" if page_count == 1 else f"_{index}"
            page = Image.new("RGBA", (2, 1), (0, 0, 0, 0))
            page.putpixel((0, 0), (255, 0, 0, 255))
            path = output_dir / f"{parameters.font_name}{suffix}.png"
            page.save(path, format="PNG")
            pages.append(path)
        return [descriptor] + pages + [output_dir / extra for extra in extra_paths]

    rasterizer = MagicMock()
    rasterizer.pack.side_effect = pack
    return rasterizer
