"""
Descriptor files written next to generated pages.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, TemplateSyntaxError

from ..errors import DescriptorError


@dataclass
class GlyphEntry:
    """Placement of one glyph on a font page."""
    code_point: int
    x: int
    y: int
    width: int
    height: int
    xoffset: int
    yoffset: int
    xadvance: int
    page: int = 0


@dataclass
class FontDescriptor:
    """Everything a BMFont text descriptor needs."""
    face: str
    size: int
    line_height: int
    base: int
    scale_w: int
    scale_h: int
    pages: List[str] = field(default_factory=list)
    glyphs: List[GlyphEntry] = field(default_factory=list)
    padding: int = 0
    spacing: int = 1
    outline: int = 0


class DescriptorWriter:
    """Renders descriptor files from Jinja2 templates."""

    def __init__(self, template_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            template_dir: Directory containing Jinja2 templates
        """
        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates"

        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False
        )

    def render_font(self, descriptor: FontDescriptor) -> str:
        """
        Render a BMFont text descriptor.

        Raises:
            DescriptorError: If the template is missing or broken
        """
        try:
            template = self.env.get_template('font.fnt.j2')
            return template.render(font=descriptor)
        except TemplateNotFound as e:
            raise DescriptorError(f"Font template not found in {self.template_dir}: {e}")
        except TemplateSyntaxError as e:
            raise DescriptorError(f"Font template syntax error at line {e.lineno}: {e.message}")

    def write_font(self, descriptor: FontDescriptor, path: Union[str, Path]) -> Path:
        """Render a font descriptor and write it to ``path``."""
        path = Path(path)
        path.write_text(self.render_font(descriptor), encoding="utf-8")
        return path
