'''
The "TEST" block contains the preview of the file shown by the file browser:
two integers for width and height followed by width * height RGBA pixels,
the rows are stored bottom up.
'''
import logging
import struct
from typing import Optional

from PIL import Image

from ..exceptions import FormatException
from .enum import BlendBlockCode


logger = logging.getLogger(__name__)

THUMBNAIL_HEADER = '<ii'


def get_thumbnail(blend) -> Optional[Image.Image]:
    idx = blend.find_by_code(BlendBlockCode.TEST)
    if idx is None:
        logger.debug('no TEST block in %r' % blend)
        return None

    block = blend[idx]
    header_size = struct.calcsize(THUMBNAIL_HEADER)
    if len(block.data) < header_size:
        raise FormatException('TEST block too short (%d bytes)' % len(block.data))

    width, height = struct.unpack_from(THUMBNAIL_HEADER, block.data)
    expected = width * height * 4

    if width < 0 or height < 0 or len(block.data) - header_size < expected:
        raise FormatException('TEST block of %d bytes cannot contain a %dx%d image' % (
            len(block.data), width, height))

    pixels = bytes(block.data[header_size:header_size + expected])
    image = Image.frombytes('RGBA', (width, height), pixels)

    return image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
