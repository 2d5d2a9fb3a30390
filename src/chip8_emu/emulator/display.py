"""
Display Surface for CHIP-8 Emulator
===================================

A 64x32 monochrome pixel grid. The only drawing primitive is XOR sprite
composition:

- Sprites are 8 pixels wide and 1-15 rows tall
- Each set sprite bit toggles the pixel beneath it
- Positions wrap around both edges (modulo width/height)
- A draw reports a collision if any pixel went from set to unset

Drawing the same sprite twice at the same position therefore restores the
previous image, which is how CHIP-8 programs erase and move objects.

The surface also offers headless views for tests and tools: a pixel
buffer, a text grid and PNG export.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import io
from typing import List, Sequence

SPRITE_WIDTH = 8


class Display:
    """
    64x32 binary pixel grid.

    Pixels are stored row-major in a flat list of booleans.

    Example:
        >>> display = Display()
        >>> display.draw_sprite(0, 0, [True] * 8)
        False
        >>> display.get_pixel(7, 0)
        True
    """

    WIDTH = 64
    HEIGHT = 32

    def __init__(self):
        """Initialize a blank display."""
        self._pixels: List[bool] = [False] * (self.WIDTH * self.HEIGHT)
        self._needs_refresh = True

    @property
    def width(self) -> int:
        return self.WIDTH

    @property
    def height(self) -> int:
        return self.HEIGHT

    @property
    def needs_refresh(self) -> bool:
        """True if the image changed since the pixel buffer was last read."""
        return self._needs_refresh

    # =========================================================================
    # Drawing
    # =========================================================================

    def clear(self) -> None:
        """Reset every pixel to unset."""
        self._pixels = [False] * (self.WIDTH * self.HEIGHT)
        self._needs_refresh = True

    def get_pixel(self, x: int, y: int) -> bool:
        """Pixel state at (x, y), with wraparound."""
        return self._pixels[(y % self.HEIGHT) * self.WIDTH + (x % self.WIDTH)]

    def draw_sprite(self, x: int, y: int, bits: Sequence[bool]) -> bool:
        """
        XOR a sprite onto the display.

        Args:
            x: Left column (wrapped modulo width)
            y: Top row (wrapped modulo height)
            bits: Row-major bitmap, 8 entries per row, MSB of each sprite
                  byte first

        Returns:
            True if any set pixel was turned off (collision)
        """
        height = len(bits) // SPRITE_WIDTH
        collision = False

        for row in range(height):
            py = (y + row) % self.HEIGHT
            for col in range(SPRITE_WIDTH):
                if not bits[row * SPRITE_WIDTH + col]:
                    continue
                pos = py * self.WIDTH + (x + col) % self.WIDTH
                if self._pixels[pos]:
                    collision = True
                self._pixels[pos] = not self._pixels[pos]

        if height:
            self._needs_refresh = True
        return collision

    # =========================================================================
    # Headless Views
    # =========================================================================

    def get_pixel_buffer(self) -> bytes:
        """
        Get display as pixel buffer.

        Returns:
            One byte per pixel (255 = set, 0 = unset), row-major,
            WIDTH * HEIGHT bytes.
        """
        self._needs_refresh = False
        return bytes(255 if pixel else 0 for pixel in self._pixels)

    def get_text_grid(self, on: str = "#", off: str = ".") -> List[str]:
        """Display rows as strings, one character per pixel."""
        return [
            "".join(
                on if self._pixels[row * self.WIDTH + col] else off
                for col in range(self.WIDTH)
            )
            for row in range(self.HEIGHT)
        ]

    def get_text(self, on: str = "#", off: str = ".") -> str:
        """Display as a newline-separated block of text."""
        return "\n".join(self.get_text_grid(on, off))

    @property
    def lit_pixels(self) -> int:
        """Number of set pixels."""
        return sum(self._pixels)

    def render_image(
        self,
        scale: int = 8,
        ink: int = 255,
        paper: int = 0,
    ) -> bytes:
        """
        Render display as PNG image.

        Args:
            scale: Size of each CHIP-8 pixel in image pixels (default 8)
            ink: Grayscale value for set pixels
            paper: Grayscale value for unset pixels

        Returns:
            PNG image bytes
        """
        from PIL import Image

        if scale < 1:
            raise ValueError(f"scale must be at least 1, got {scale}")

        img = Image.new("L", (self.WIDTH, self.HEIGHT), color=paper)
        img.putdata([ink if pixel else paper for pixel in self._pixels])
        if scale > 1:
            img = img.resize(
                (self.WIDTH * scale, self.HEIGHT * scale),
                resample=Image.NEAREST,
            )

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    def __repr__(self) -> str:
        return f"Display({self.WIDTH}x{self.HEIGHT}, lit={self.lit_pixels})"
