import logging
import os

import pytest

from blendfactory import BlendBuilder, make_sdna
from blendstruct.blend.sdna import Catalog


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)


@pytest.fixture
def builder():
    return BlendBuilder()


@pytest.fixture
def catalog():
    return Catalog.build(make_sdna())
