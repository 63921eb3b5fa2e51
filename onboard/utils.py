import io
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError


def image_size(data: bytes) -> Optional[Tuple[int, int]]:
    """(width, height) if `data` decodes as an image Pillow knows, else None."""
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.verify()
            return im.size
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None


def placeholder_svg(title: str, width: int = 600, height: int = 600) -> str:
    return f"""
    <svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}">
      <rect width="100%" height="100%" fill="#1f2630"/>
      <text x="50%" y="50%" fill="#e0e6ee" font-size="28" text-anchor="middle" dominant-baseline="middle">
        {title[:32]}
      </text>
    </svg>
    """
