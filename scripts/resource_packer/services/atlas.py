"""
Texture atlas packing for sprite directories and glyph pages.
"""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional, Tuple, Union

import toml
from PIL import Image

from ..errors import AtlasGenerationError


@dataclass
class AtlasConfig:
    """Configuration for atlas generation."""
    padding: int = 2
    power_of_two: bool = True
    max_size: tuple[int, int] = (2048, 2048)
    format: str = "RGBA"


@dataclass
class Rectangle:
    """Rectangle for atlas layout calculations."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


@dataclass
class LayoutNode:
    """Node in the atlas layout tree for bin packing."""
    rect: Rectangle
    used: bool = False
    right: Optional['LayoutNode'] = None
    down: Optional['LayoutNode'] = None

    def find_node(self, width: int, height: int) -> Optional['LayoutNode']:
        """Find a node that can fit the given dimensions."""
        if self.used:
            node = self.right.find_node(width, height) if self.right else None
            if node:
                return node
            return self.down.find_node(width, height) if self.down else None
        elif width <= self.rect.width and height <= self.rect.height:
            return self
        else:
            return None

    def split_node(self, width: int, height: int) -> 'LayoutNode':
        """Split this node to accommodate the given dimensions."""
        self.used = True

        if self.rect.width > width:
            self.right = LayoutNode(Rectangle(
                self.rect.x + width, self.rect.y,
                self.rect.width - width, self.rect.height
            ))

        if self.rect.height > height:
            self.down = LayoutNode(Rectangle(
                self.rect.x, self.rect.y + height,
                width, self.rect.height - height
            ))

        return self


@dataclass
class AtlasLayout:
    """Layout information for one atlas page."""
    width: int
    height: int
    positions: Dict[str, Rectangle]
    efficiency: float = 0.0

    def add_item(self, name: str, rect: Rectangle) -> None:
        self.positions[name] = rect

    def calculate_efficiency(self, total_item_area: int) -> None:
        """Calculate layout efficiency (used area / total area)."""
        total_area = self.width * self.height
        self.efficiency = total_item_area / total_area if total_area > 0 else 0.0


@dataclass
class AtlasResult:
    """Result of atlas generation."""
    atlas: Image.Image
    frame_map: Dict[str, Dict[str, int]]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def save_frame_map(self, path: Union[str, Path], format: str = "toml") -> None:
        """Save frame map to TOML or JSON file."""
        atlas_data = {
            "meta": {
                "size": {"w": self.atlas.width, "h": self.atlas.height},
                "format": self.atlas.mode,
                "scale": 1,
                **self.metadata
            },
            "frames": self.frame_map,
        }

        if format.lower() == "toml":
            with open(path, 'w') as f:
                toml.dump(atlas_data, f)
        elif format.lower() == "json":
            with open(path, 'w') as f:
                json.dump(atlas_data, f, indent=2)
        else:
            raise AtlasGenerationError(f"Unsupported frame map format: {format}")


class AtlasLayoutEngine:
    """Engine for calculating atlas layouts."""

    def __init__(self, config: AtlasConfig):
        self.config = config

    def calculate_packed_layout(self, items: List[Tuple[str, int, int]]) -> Optional[AtlasLayout]:
        """
        Calculate a single-page layout using bin packing.

        Args:
            items: List of (name, width, height) tuples

        Returns:
            The most efficient layout that fits every item within
            ``max_size``, or None when no tried size fits them all
        """
        if not items:
            return AtlasLayout(0, 0, {})

        # Largest first packs better
        sorted_items = sorted(items, key=lambda x: x[1] * x[2], reverse=True)

        total_area = sum(
            (width + self.config.padding) * (height + self.config.padding)
            for _, width, height in sorted_items
        )
        initial_size = int(math.sqrt(total_area)) + max(item[1] for item in sorted_items)

        best_layout = None
        best_efficiency = 0.0

        for size_multiplier in [1.0, 1.2, 1.5, 2.0]:
            atlas_size = int(initial_size * size_multiplier)

            if self.config.power_of_two:
                atlas_size = self._next_power_of_two(atlas_size)

            width = min(atlas_size, self.config.max_size[0])
            height = min(atlas_size, self.config.max_size[1])

            layout = self._try_pack_layout(sorted_items, width, height)
            if layout and layout.efficiency > best_efficiency:
                best_layout = layout
                best_efficiency = layout.efficiency

        return best_layout

    def pack_pages(self, items: List[Tuple[str, int, int]],
                   page_size: Tuple[int, int]) -> List[AtlasLayout]:
        """
        Pack items onto as many fixed-size pages as needed.

        Raises:
            AtlasGenerationError: If an item is larger than an empty page
        """
        sorted_items = sorted(items, key=lambda x: x[1] * x[2], reverse=True)
        pages: List[AtlasLayout] = []
        roots: List[LayoutNode] = []

        for name, item_width, item_height in sorted_items:
            padded_width = item_width + self.config.padding
            padded_height = item_height + self.config.padding

            node = None
            for index, root in enumerate(roots):
                node = root.find_node(padded_width, padded_height)
                if node:
                    page = pages[index]
                    break

            if node is None:
                root = LayoutNode(Rectangle(0, 0, page_size[0], page_size[1]))
                node = root.find_node(padded_width, padded_height)
                if node is None:
                    raise AtlasGenerationError(
                        f"Item '{name}' ({item_width}x{item_height}) does not fit a "
                        f"{page_size[0]}x{page_size[1]} page"
                    )
                page = AtlasLayout(page_size[0], page_size[1], {})
                roots.append(root)
                pages.append(page)

            node.split_node(padded_width, padded_height)
            page.add_item(name, Rectangle(node.rect.x, node.rect.y, item_width, item_height))

        for page in pages:
            page.calculate_efficiency(
                sum(rect.width * rect.height for rect in page.positions.values())
            )
        return pages

    def _try_pack_layout(self, items: List[Tuple[str, int, int]],
                         width: int, height: int) -> Optional[AtlasLayout]:
        """Try to pack items into given dimensions using bin packing."""
        root = LayoutNode(Rectangle(0, 0, width, height))
        layout = AtlasLayout(width, height, {})
        total_item_area = 0

        for name, item_width, item_height in items:
            padded_width = item_width + self.config.padding
            padded_height = item_height + self.config.padding

            node = root.find_node(padded_width, padded_height)
            if not node:
                return None

            node.split_node(padded_width, padded_height)
            layout.add_item(name, Rectangle(
                node.rect.x, node.rect.y, item_width, item_height
            ))
            total_item_area += item_width * item_height

        layout.calculate_efficiency(total_item_area)
        return layout

    def optimize_atlas_size(self, layout: AtlasLayout) -> AtlasLayout:
        """Shrink the atlas to the bounds of its items."""
        if not layout.positions:
            return layout

        max_x = max(rect.right for rect in layout.positions.values())
        max_y = max(rect.bottom for rect in layout.positions.values())

        if self.config.power_of_two:
            max_x = self._next_power_of_two(max_x)
            max_y = self._next_power_of_two(max_y)

        optimized_width = min(max_x, layout.width)
        optimized_height = min(max_y, layout.height)

        total_item_area = sum(rect.width * rect.height for rect in layout.positions.values())
        new_layout = AtlasLayout(optimized_width, optimized_height, layout.positions.copy())
        new_layout.calculate_efficiency(total_item_area)

        return new_layout

    def _next_power_of_two(self, n: int) -> int:
        """Find the next power of two greater than or equal to n."""
        if n <= 0:
            return 1

        if n & (n - 1) == 0:
            return n

        power = 1
        while power < n:
            power <<= 1

        return power


class AtlasGenerator:
    """Generates sprite atlases from named images."""

    def __init__(self, config: AtlasConfig):
        self.config = config
        self.layout_engine = AtlasLayoutEngine(config)

    def create_sprite_atlas(self, sprites: List[Tuple[str, Image.Image]]) -> AtlasResult:
        """
        Create a single-page atlas for a collection of sprites.

        Args:
            sprites: List of (name, image) tuples

        Returns:
            AtlasResult with atlas image and frame map

        Raises:
            AtlasGenerationError: If there are no sprites or they do not fit
        """
        if not sprites:
            raise AtlasGenerationError("No sprites provided for atlas generation")

        names = [name for name, _ in sprites]
        if len(set(names)) != len(names):
            raise AtlasGenerationError(f"Duplicate sprite names: {sorted(names)}")

        items = [(name, sprite.width, sprite.height) for name, sprite in sprites]

        layout = self.layout_engine.calculate_packed_layout(items)
        if layout is None:
            raise AtlasGenerationError(
                f"{len(sprites)} sprites do not fit into {self.config.max_size[0]}x{self.config.max_size[1]}"
            )

        layout = self.layout_engine.optimize_atlas_size(layout)

        atlas = Image.new(self.config.format, (layout.width, layout.height), (0, 0, 0, 0))
        frame_map = {}

        for name, sprite in sprites:
            rect = layout.positions[name]
            atlas.paste(sprite, (rect.x, rect.y), sprite if sprite.mode == 'RGBA' else None)
            frame_map[name] = {
                "x": rect.x,
                "y": rect.y,
                "w": rect.width,
                "h": rect.height
            }

        return AtlasResult(
            atlas=atlas,
            frame_map=frame_map,
            metadata={
                "sprite_count": len(sprites),
                "layout_efficiency": round(layout.efficiency, 4)
            }
        )
