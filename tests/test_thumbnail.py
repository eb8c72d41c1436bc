import struct

import pytest

from blendstruct.blend import parse
from blendstruct.blend.thumbnail import get_thumbnail
from blendstruct.exceptions import FormatException


RED = (0xff, 0x00, 0x00, 0xff)
BLUE = (0x00, 0x00, 0xff, 0xff)


def test_thumbnail(builder):
    width, height = 3, 2
    # the rows are stored from the bottom
    pixels = bytes(BLUE) * width + bytes(RED) * width

    builder.add(b'TEST', struct.pack('<ii', width, height) + pixels)
    builder.add_sdna()
    builder.end()

    image = get_thumbnail(parse(builder.build()))

    assert image.mode == 'RGBA'
    assert image.size == (width, height)
    assert image.getpixel((0, 0)) == RED
    assert image.getpixel((2, 1)) == BLUE


def test_no_thumbnail(builder):
    builder.add_sdna()
    builder.end()

    assert get_thumbnail(parse(builder.build())) is None


def test_thumbnail_truncated(builder):
    builder.add(b'TEST', struct.pack('<ii', 16, 16) + b'\x00' * 10)
    builder.add_sdna()
    builder.end()

    with pytest.raises(FormatException):
        get_thumbnail(parse(builder.build()))
