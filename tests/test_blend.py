import struct

import pytest

from blendfactory import (
    SCHEMA,
    BlendBuilder,
    make_sdna,
    struct_index,
    pack_id,
    pack_node,
    pack_object,
)
from blendstruct.blend import (
    parse,
    load,
    block_code,
    BlendFile,
    BLOCK_HEADER_SIZE,
)
from blendstruct.blend.enum import BlendBlockCode, BlendPointerSize, BlendEndianness
from blendstruct.enum import Compliant
from blendstruct.exceptions import (
    FormatException,
    MagicException,
    UnpackException,
    ConsistencyException,
    UnsupportedVariantException,
    LookupMissException,
)


FOO = [('Foo', 12, [('int', 'a'), ('int', 'b[2]')])]


def test_block_header_size():
    assert BLOCK_HEADER_SIZE == 24


def test_block_code():
    assert block_code('OB') == b'OB\x00\x00'
    assert block_code(b'DNA1') == b'DNA1'
    assert block_code(BlendBlockCode.SC) == b'SC\x00\x00'

    with pytest.raises(ValueError):
        block_code('TOOLONG')


def test_foo():
    builder = BlendBuilder()
    builder.add_sdna(FOO)
    builder.add(b'DATA', struct.pack('<iii', 5, 1, 2), sdna_index=0)
    builder.end()

    blend = parse(builder.build())

    assert isinstance(blend, BlendFile)
    assert blend.version == '300'
    assert blend.header.pointer_size.value == BlendPointerSize.PTR_8
    assert blend.header.endianness.value == BlendEndianness.LITTLE_ENDIAN

    assert [_.code for _ in blend] == [b'DNA1', b'ENDB']

    chunk = blend[0].children[0]
    assert chunk.index is None
    assert blend.struct_name(chunk) == 'Foo'

    assert blend.offset_of('Foo', 'a') == 0
    assert blend.offset_of('Foo', 'b[2]') == 4
    assert blend.read_field(chunk, 'Foo', 'a', 'i') == 5
    assert blend.read_field(chunk, 'Foo', 'b[2]', '2i') == (1, 2)
    assert blend.catalog.type_length('Foo') == 12


def test_notable():
    builder = BlendBuilder(magic=b'NOTABLE')
    builder.add_sdna()
    builder.end()

    with pytest.raises(MagicException) as excinfo:
        parse(builder.build())

    assert isinstance(excinfo.value, FormatException)
    assert excinfo.value.chain == ['magic', 'header']


@pytest.mark.parametrize('pointer_size,endianness', [
    (b'_', b'v'),
    (b'-', b'V'),
    (b'_', b'V'),
])
def test_unsupported_variant(pointer_size, endianness):
    builder = BlendBuilder(pointer_size=pointer_size, endianness=endianness)
    builder.add_sdna()
    builder.end()

    with pytest.raises(UnsupportedVariantException):
        parse(builder.build())


def test_unknown_pointer_tag():
    builder = BlendBuilder(pointer_size=b'x')
    builder.end()

    with pytest.raises(UnpackException):
        parse(builder.build())


def test_truncated_header():
    with pytest.raises(UnpackException):
        parse(b'BLENDER-v3')


def test_data_blocks_belong_to_their_owner(builder):
    builder.add_sdna()
    ob = builder.add(b'OB', pack_object('Cube'), sdna_index=struct_index('Object'))
    first = builder.add(b'DATA', b'\x00' * 8)
    second = builder.add(b'DATA', b'\x00' * 3)
    me = builder.add(b'ME', b'\x00' * 4)
    third = builder.add(b'DATA', b'\x00' * 4)
    builder.end()

    blend = parse(builder.build())

    assert [_.code for _ in blend] == [b'DNA1', b'OB\x00\x00', b'ME\x00\x00', b'ENDB']
    assert [_.index for _ in blend] == [0, 1, 2, 3]
    assert all(not _.is_code('DATA') for _ in blend)

    obj, mesh = blend[1], blend[2]
    assert obj.old_address == ob and mesh.old_address == me
    assert [_.old_address for _ in obj.children] == [first, second]
    assert [_.old_address for _ in mesh.children] == [third]
    assert isinstance(obj.children, tuple)

    # the payload not multiple of four is padded
    assert bytes(obj.children[1].data) == b'\x00' * 3

    assert [_.old_address for _ in blend.all_blocks()][1:6] == [ob, first, second, me, third]

    assert blend.resolve(second) is obj.children[1]


def test_blocks_are_read_only(builder):
    builder.add_sdna()
    builder.add(b'OB', pack_object('Cube'), sdna_index=struct_index('Object'))
    builder.add(b'DATA', b'\x00' * 4)
    builder.end()

    blend = parse(builder.build())
    obj = blend[1]

    with pytest.raises(AttributeError):
        obj.children = ()

    with pytest.raises(AttributeError):
        obj.index = 0

    with pytest.raises(AttributeError):
        obj.children[0].old_address = 0

    # there is no __dict__ to add attributes to
    with pytest.raises(AttributeError):
        obj.name = 'Cube'

    assert len(obj.children) == 1
    assert obj.children[0].index is None


def test_orphan_data(builder):
    builder.add(b'DATA', b'\x00' * 4)
    builder.add_sdna()
    builder.end()

    with pytest.raises(ConsistencyException):
        parse(builder.build())


def test_missing_dna1(builder):
    builder.add(b'OB', pack_object('Cube'))
    builder.end()

    with pytest.raises(FormatException) as excinfo:
        parse(builder.build())

    assert 'DNA1' in str(excinfo.value)


def test_broken_dna1(builder):
    builder.add(b'DNA1', make_sdna(labels=(b'NAME', b'TYPO', b'TLEN', b'STRC')))
    builder.end()

    with pytest.raises(MagicException) as excinfo:
        parse(builder.build())

    assert excinfo.value.chain[-1] == 'DNA1'


def test_second_dna1_is_ignored(builder):
    builder.add_sdna()
    builder.add_sdna(FOO)
    builder.end()

    blend = parse(builder.build())

    assert len(blend.catalog) == len(SCHEMA)
    assert len(list(blend.blocks_by_code('DNA1'))) == 2


def test_endb_stops_parsing(builder):
    builder.add_sdna()
    builder.end()
    builder.add(b'OB', pack_object('Ghost'))

    blend = parse(builder.build())

    assert blend[-1].is_code(BlendBlockCode.ENDB)
    assert blend.find_by_code('OB') is None


def test_short_endb(builder):
    builder.add_sdna()
    builder.add_raw(b'ENDB')

    blend = parse(builder.build())

    assert blend[-1].code == b'ENDB'
    assert blend[-1].size == 0
    assert len(blend) == 2


def test_missing_endb(builder, caplog):
    builder.add_sdna()
    builder.add(b'OB', pack_object('Cube'))

    blend = parse(builder.build())

    assert len(blend) == 2
    assert 'no ENDB' in caplog.text


def test_truncated_payload(builder):
    builder.add_sdna()
    builder.add_raw(struct.pack('<4sIQII', b'OB\x00\x00', 100, 0x1000, 0, 1) + b'\x00' * 10)

    with pytest.raises(UnpackException) as excinfo:
        parse(builder.build())

    assert excinfo.value.chain[-1].startswith('block at 0x')


def test_find_by_code(builder):
    builder.add_sdna()
    builder.add(b'OB', pack_object('First'), sdna_index=struct_index('Object'))
    builder.add(b'GR', b'\x00' * 4)
    builder.add(b'OB', pack_object('Second'), sdna_index=struct_index('Object'))
    builder.end()

    blend = parse(builder.build())

    assert blend.find_by_code('OB') == 1
    assert blend.find_by_code(b'OB', start=2) == 3
    assert blend.find_by_code(BlendBlockCode.OB, start=4) is None
    assert blend.find_by_code('SC') is None
    assert blend.find_by_code('DNA1') == 0

    assert [blend.id_name(_) for _ in blend.blocks_by_code('OB')] == ['First', 'Second']


def test_read_field(builder):
    builder.add_sdna()
    nodes = b''.join(pack_node('node%d' % _, value=_ * 10) for _ in range(3))
    builder.add(b'NO', nodes, sdna_index=struct_index('Node'), count=3)
    builder.end()

    blend = parse(builder.build())
    block = blend[blend.find_by_code('NO')]

    assert blend.identify(block, 'Node')
    assert block.count == 3
    assert [blend.read_field(block, 'Node', 'value', 'i', index=_) for _ in range(3)] == [0, 10, 20]
    assert blend.read_string(block, 'Node', 'name[12]', index=2) == 'node2'
    assert blend.read_pointer(block, 'Node', '*parent') == 0
    assert blend.dereference(block, 'Node', '*parent') is None

    # past the end of the payload
    with pytest.raises(UnpackException):
        blend.read_field(block, 'Node', 'value', 'i', index=3)


def test_id_name(builder):
    builder.add_sdna()
    builder.add(b'OB', pack_object('Camera'), sdna_index=struct_index('Object'))
    builder.add(b'ID', pack_id('SomethingWithAVeryLongName', code=b'XX'), sdna_index=struct_index('ID'))
    builder.end()

    blend = parse(builder.build())

    assert blend.id_name(blend[1]) == 'Camera'
    assert blend.id_name(blend[1], strip_code=False) == 'OBCamera'
    assert blend.id_name(blend[2]) == 'SomethingWithAVeryLongName'


def test_missing_field(builder):
    builder.add_sdna(FOO)
    builder.add(b'FOO', struct.pack('<iii', 5, 1, 2))
    builder.end()

    data = builder.build()

    # a missing field is read at the offset zero
    blend = parse(data)
    assert blend.read_field(blend[1], 'Foo', 'c', 'i') == 5

    blend = parse(data, compliant=Compliant.STRICT | Compliant.LOOKUP)
    assert blend.read_field(blend[1], 'Foo', 'b[2]', 'i', index=0) == 1

    with pytest.raises(LookupMissException):
        blend.read_field(blend[1], 'Foo', 'c', 'i')


def test_load(builder, tmp_path):
    builder.add_sdna()
    builder.add(b'OB', pack_object('Cube'), sdna_index=struct_index('Object'))
    builder.end()

    path = tmp_path / 'untitled.blend'
    path.write_bytes(builder.build())

    blend = load(path)

    assert len(blend) == 3
    assert blend.id_name(blend[1]) == 'Cube'
    assert blend.struct_size('Object') == 100


def test_not_compliant_parse():
    builder = BlendBuilder(magic=b'BLENDOR')
    builder.add_sdna()
    builder.end()

    blend = parse(builder.build(), compliant=Compliant.NONE)

    assert blend.header.magic.value == b'BLENDOR'
