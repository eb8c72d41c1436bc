#!/usr/bin/env python3
'''
Show (or save) the preview image embedded into a .blend file

 $ blendthumbnail.py untitled.blend [output.png]
'''
import logging
import sys
import os

from blendstruct.blend import load
from blendstruct.blend.thumbnail import get_thumbnail
from blendstruct.exceptions import BlendStructException


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
logger.setLevel(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)


def usage(progname):
    print(f'usage: {progname} <blend file path> [output path]')
    sys.exit(1)


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    path = sys.argv[1]

    try:
        blend = load(path)
        image = get_thumbnail(blend)
    except BlendStructException as e:
        logger.error(f'cannot read the thumbnail of \'{path}\': {e}')
        sys.exit(2)

    if image is None:
        logger.error('no thumbnail in this file')
        sys.exit(1)

    logger.info(f'thumbnail {image.width}x{image.height}')

    if len(sys.argv) > 2:
        image.save(sys.argv[2])
    else:
        image.show()
