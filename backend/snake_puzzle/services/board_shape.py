"""
Snake Puzzle - Board Shapes

Маска стен для фигурных полей: walls[y][x], True = стена.
"""

from pathlib import Path
from typing import List, Protocol, Sequence, Union

from PIL import Image


class BoardShape(Protocol):
    def get_walls(self, width: int, height: int) -> List[List[bool]]:
        ...


def _open_walls(width: int, height: int) -> List[List[bool]]:
    return [[False] * width for _ in range(height)]


class MaskBoardShape:
    """
    ASCII-маска: '#' = стена, любой другой символ = игровая клетка.
    Масштабируется до нужного размера по ближайшему соседу.
    """

    WALL_CHAR = "#"

    def __init__(self, rows: Sequence[str]):
        self.rows = [row.rstrip("\n") for row in rows]

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MaskBoardShape":
        text = Path(path).read_text(encoding="utf-8")
        return cls([line for line in text.splitlines() if line.strip()])

    def get_walls(self, width: int, height: int) -> List[List[bool]]:
        src_h = len(self.rows)
        src_w = max((len(row) for row in self.rows), default=0)
        if src_h == 0 or src_w == 0:
            return _open_walls(width, height)

        walls = []
        for y in range(height):
            row = self.rows[y * src_h // height]
            walls.append([
                (x * src_w // width) < len(row) and row[x * src_w // width] == self.WALL_CHAR
                for x in range(width)
            ])
        return walls


class ImageBoardShape:
    """
    Силуэт из картинки: тёмные пиксели (R, G и B < 128) - игровые клетки,
    всё остальное (включая прозрачность) - стены.
    """

    DARK_THRESHOLD = 128

    def __init__(self, image: Union[str, Path, Image.Image]):
        if isinstance(image, Image.Image):
            self.image = image.convert("RGBA")
        else:
            # convert() читает пиксели целиком, файл закрывается сразу
            with Image.open(image) as source:
                self.image = source.convert("RGBA")

    def get_walls(self, width: int, height: int) -> List[List[bool]]:
        rgba = self.image.resize((width, height), Image.Resampling.NEAREST)

        # Белый фон, чтобы прозрачные пиксели стали стенами
        background = Image.new("RGBA", (width, height), (255, 255, 255, 255))
        pixels = Image.alpha_composite(background, rgba).convert("RGB").load()

        walls = []
        for y in range(height):
            row = []
            for x in range(width):
                r, g, b = pixels[x, y]
                row.append(not (r < self.DARK_THRESHOLD and g < self.DARK_THRESHOLD and b < self.DARK_THRESHOLD))
            walls.append(row)
        return walls
