import gc
import weakref

import pytest

from blendfactory import SCHEMA, make_sdna
from blendstruct.blend.sdna import Catalog
from blendstruct.enum import Compliant
from blendstruct.exceptions import LookupMissException
from blendstruct.blend.layout import (
    effective_size,
    is_pointer,
    array_dimensions,
    element_count,
    base_name,
    OffsetResolver,
)


@pytest.mark.parametrize('field_name,type_length,size', [
    ('co[3]', 4, 12),
    ('mat[4][4]', 4, 64),
    ('*data', 0, 8),
    ('*data', 1, 8),
    ('**mat', 4, 8),
    ('*mtface[8]', 4, 8),
    ('(*callback)()', 0, 8),
    ('name[66]', 1, 66),
    ('totvert', 4, 4),
])
def test_effective_size(field_name, type_length, size):
    assert effective_size(field_name, type_length) == size


def test_effective_size_pointer_width():
    assert effective_size('*next', 2, pointer_size=4) == 4


def test_decoding():
    assert is_pointer('*next')
    assert is_pointer('(*func)()')
    assert not is_pointer('next')

    assert array_dimensions('mat[4][4]') == (4, 4)
    assert array_dimensions('co') == ()
    assert element_count('co') == 1
    assert element_count('mat[3][4]') == 12

    assert base_name('*next') == 'next'
    assert base_name('(*func)()') == 'func'
    assert base_name('name[64]') == 'name'
    assert base_name('totvert') == 'totvert'


def test_offsets(catalog):
    resolver = catalog.resolver

    assert resolver.offset_of('Foo', 'a') == 0
    assert resolver.offset_of('Foo', 'b[2]') == 4

    assert resolver.offset_of('ID', 'name[66]') == 16
    assert resolver.offset_of('ID', 'flag') == 82

    assert resolver.offset_of('Object', '*data') == 84
    assert resolver.offset_of('Object', 'type') == 92

    assert resolver.offset_of('Collection', 'gobject') == 84
    assert resolver.offset_of('Collection', 'children') == 100

    assert resolver.offset_of('Matrix', '(*callback)()') == 64


@pytest.mark.parametrize('struct_name', [_[0] for _ in SCHEMA])
def test_layout_is_consistent(catalog, struct_name):
    resolver = catalog.resolver
    layout = resolver.layout(struct_name)

    assert len(layout) == len(catalog.struct(struct_name).fields)

    # offsets are monotonic and each field starts where the previous ends
    previous = None
    for field in layout:
        if previous is not None:
            assert field.offset == previous.offset + previous.size
            assert field.offset >= previous.offset
        previous = field

    assert resolver.computed_size(struct_name) == catalog.struct_size(struct_name)


def test_layout_is_cached(catalog):
    assert catalog.resolver.layout('Node') is catalog.resolver.layout('Node')


def test_layout_cache_does_not_keep_the_catalog():
    catalog = Catalog.build(make_sdna())
    assert catalog.resolver.layout('Foo')

    reference = weakref.ref(catalog)
    del catalog
    gc.collect()

    assert reference() is None


def test_field(catalog):
    resolver = catalog.resolver

    field = resolver.field('Node', '*parent')
    assert field.offset == 16
    assert field.size == 8
    assert field.type_name == 'Node'
    assert field.is_pointer

    matrix = resolver.field('Matrix', 'mat[4][4]')
    assert matrix.dimensions == (4, 4)
    assert not matrix.is_pointer

    # the names are matched verbatim
    assert resolver.field('Node', 'parent') is None
    assert resolver.field('Nothing', 'a') is None


def test_find_field(catalog):
    resolver = catalog.resolver

    assert resolver.find_field('Node', 'parent').name == '*parent'
    assert resolver.find_field('ID', 'name').name == 'name[66]'
    assert resolver.find_field('Matrix', 'callback').name == '(*callback)()'
    assert resolver.find_field('Node', 'child') is None


def test_miss_is_zero(catalog):
    resolver = catalog.resolver

    assert resolver.offset_of('Foo', 'missing') == 0
    assert resolver.offset_of('Missing', 'a') == 0
    assert resolver.size_of('Foo', 'missing') == 0
    assert resolver.layout('Missing') == ()
    assert resolver.computed_size('Missing') == 0


def test_miss_lookup_compliant(catalog):
    resolver = OffsetResolver(catalog, compliant=Compliant.LOOKUP)

    assert resolver.offset_of('Foo', 'b[2]') == 4

    with pytest.raises(LookupMissException) as excinfo:
        resolver.offset_of('Foo', 'b')

    assert excinfo.value.chain == ['b', 'Foo']

    with pytest.raises(LookupMissException):
        resolver.size_of('Missing', 'a')
