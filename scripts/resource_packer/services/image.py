"""
Image processing services used by tasks.
"""

import io
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image

from ..flags import Color

IMAGE_EXTENSIONS = ("png", "jpg", "jpeg")

_NEIGHBOURS = ((0, 1), (0, -1), (1, 0), (-1, 0))


def _shift(array: np.ndarray, dy: int, dx: int) -> np.ndarray:
    """out[y, x] = array[y + dy, x + dx], zero outside the array."""
    out = np.zeros_like(array)
    h, w = array.shape[:2]
    out[max(0, -dy):h - max(0, dy), max(0, -dx):w - max(0, dx)] = \
        array[max(0, dy):h - max(0, -dy), max(0, dx):w - max(0, -dx)]
    return out


class ImageUtils:
    """Utility class for common image processing operations."""

    @staticmethod
    def load_image(data: Union[bytes, str, Path, Image.Image]) -> Image.Image:
        """
        Load image from various sources.

        Raises:
            ValueError: If data cannot be loaded as image
        """
        if isinstance(data, Image.Image):
            return data
        elif isinstance(data, bytes):
            try:
                return Image.open(io.BytesIO(data))
            except Exception as e:
                raise ValueError(f"Cannot load image from bytes: {e}")
        elif isinstance(data, (str, Path)):
            try:
                with Image.open(data) as image:
                    return image.copy()
            except Exception as e:
                raise ValueError(f"Cannot load image from path '{data}': {e}")
        else:
            raise ValueError(f"Unsupported image data type: {type(data)}")

    @staticmethod
    def save_image(image: Image.Image, path: Union[str, Path], format: str = 'PNG', **kwargs) -> None:
        """Save image to file with quality preservation."""
        save_kwargs = {
            'optimize': True,
        }
        compress_level = kwargs.pop('compress_level', 6)

        if format.upper() == 'PNG':
            save_kwargs['compress_level'] = compress_level
        elif format.upper() in ['JPEG', 'JPG']:
            format = 'JPEG'
            save_kwargs.update({
                'quality': kwargs.pop('quality', 95),
                'progressive': kwargs.pop('progressive', True)
            })
            if image.mode == 'RGBA':
                image = image.convert('RGB')

        save_kwargs.update(kwargs)

        image.save(path, format=format, **save_kwargs)

    @staticmethod
    def ensure_rgba(image: Image.Image) -> Image.Image:
        """Convert image to RGBA mode if not already."""
        if image.mode != 'RGBA':
            return image.convert('RGBA')
        return image

    @staticmethod
    def resize_with_quality(image: Image.Image, target_size: Tuple[int, int],
                            method: str = 'lanczos') -> Image.Image:
        """
        Resize image with quality preservation.

        Args:
            image: Source image
            target_size: Target (width, height)
            method: Resampling method ('lanczos', 'bicubic', 'bilinear', 'nearest')
        """
        resample = {
            'lanczos': Image.Resampling.LANCZOS,
            'bicubic': Image.Resampling.BICUBIC,
            'bilinear': Image.Resampling.BILINEAR,
            'nearest': Image.Resampling.NEAREST,
        }.get(method, Image.Resampling.LANCZOS)

        return image.resize(target_size, resample)

    @staticmethod
    def clamp(image: Image.Image, max_distance: int = 16) -> Image.Image:
        """
        Bleed the color of visible pixels into fully transparent ones.

        Transparent pixels keep alpha 0 but take the average color of their
        nearest visible neighbours, so bilinear sampling at sprite borders
        does not pull in black fringes. Pixels further than ``max_distance``
        from any visible pixel are left black.
        """
        image = ImageUtils.ensure_rgba(image)
        pixels = np.array(image)
        filled = pixels[..., 3] > 0

        if filled.all() or not filled.any():
            return image

        rgb = pixels[..., :3].astype(np.float64)
        rgb[~filled] = 0.0

        for _ in range(max_distance):
            if filled.all():
                break
            total = np.zeros_like(rgb)
            count = np.zeros(filled.shape, dtype=np.float64)
            for dy, dx in _NEIGHBOURS:
                neighbour_filled = _shift(filled, dy, dx)
                total += _shift(rgb, dy, dx) * neighbour_filled[..., None]
                count += neighbour_filled

            grown = ~filled & (count > 0)
            if not grown.any():
                break
            rgb[grown] = total[grown] / count[grown][:, None]
            filled |= grown

        pixels[..., :3] = np.rint(rgb).astype(np.uint8)
        return Image.fromarray(pixels)

    @staticmethod
    def pre_blend(image: Image.Image, color: Color) -> Image.Image:
        """Composite a background color under the image's alpha."""
        image = ImageUtils.ensure_rgba(image)
        background = Image.new('RGBA', image.size, color.rgba)
        return Image.alpha_composite(background, image)

    @staticmethod
    def clamp_image(path: Union[str, Path], **save_kwargs) -> None:
        """Border-clamp an image file in place."""
        image = ImageUtils.load_image(path)
        ImageUtils.save_image(ImageUtils.clamp(image), path, **save_kwargs)

    @staticmethod
    def pre_blend_image(path: Union[str, Path], color: Color, **save_kwargs) -> None:
        """Pre-blend an image file in place over the given color."""
        image = ImageUtils.load_image(path)
        ImageUtils.save_image(ImageUtils.pre_blend(image, color), path, **save_kwargs)
