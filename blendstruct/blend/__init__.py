'''
# Blender file format

A .blend file is a dump of the memory of Blender: a small header followed by
a sequence of blocks, each one with its own header

  .-----------------------------.
  | "BLENDER" | '-' | 'v' | 300 |  pointer size, endianness, version
  | block header | payload      |
  | block header | payload      |
    ...
  | "DNA1" header | SDNA        |  description of every struct
  | "ENDB"                      |
  '-----------------------------'

Every block header tells the code of the block, the size of the payload, the
address the data had in memory when saved, the index of its struct in the SDNA
and how many consecutive instances of that struct are in the payload.

The blocks with code "DATA" belong to the last block with a different code
(e.g. the vertices of a mesh follow the "ME" block) so they are not part of
the top level sequence but of the children of their owner.

Only files with 8 bytes pointers and little endian byte order are supported.

See <https://archive.blender.org/wiki/index.php/Dev:Source/Architecture/File_Format/>.
'''
import logging
import struct
from typing import Iterator, List, Optional, Tuple

from ..core import Record
from .. import fields
from ..enum import Compliant
from ..exceptions import (
    FormatException,
    UnpackException,
    ConsistencyException,
    UnsupportedVariantException,
)
from ..streams import Stream
from .enum import (
    BlendBlockCode,
    BlendPointerSize,
    BlendEndianness,
    ID_NAME_LENGTH,
)
from .sdna import Catalog
from .references import AddressIndex, Navigator


logger = logging.getLogger(__name__)


class FileHeader(Record):
    magic        = fields.StringField(7, default=b'BLENDER', is_magic=True)
    pointer_size = fields.StructField('c', enum=BlendPointerSize, default=BlendPointerSize.PTR_8)
    endianness   = fields.StructField('c', enum=BlendEndianness, default=BlendEndianness.LITTLE_ENDIAN)
    version      = fields.StringField(3, default=b'300')

    def __str__(self):
        return 'Blender %s, %s, %s' % (
            self.version.value.decode('latin1'),
            self.pointer_size.value,
            self.endianness.value,
        )


class BlockHeader(Record):
    '''Header of a block for files with 8 bytes pointers'''
    code         = fields.StringField(4)
    payload_size = fields.StructField('I')
    old_address  = fields.StructField('Q')
    sdna_index   = fields.StructField('I')
    count        = fields.StructField('I')


BLOCK_HEADER_SIZE = BlockHeader().size


def block_code(code) -> bytes:
    '''Normalize a block code: 'OB', b'OB' and BlendBlockCode.OB are all b'OB\\x00\\x00' '''
    if isinstance(code, BlendBlockCode):
        return code.value

    if isinstance(code, str):
        code = code.encode('latin1')

    if len(code) > 4:
        raise ValueError('block code %r longer than 4 bytes' % code)

    return code.ljust(4, b'\x00')


class Block(object):
    '''One block of the file, the payload is a view over the buffer of the file.

    "index" is the position in the top level sequence, None for the DATA blocks
    that are only reachable from the "children" of their owner.

    A block is read-only: its attributes can't be assigned after creation.'''

    __slots__ = (
        '_code', '_size', '_old_address', '_sdna_index', '_count',
        '_data', '_offset', '_index', '_children',
    )

    def __init__(self, code, size, old_address, sdna_index, count, data, offset=None, index=None, children=()):
        self._code = code
        self._size = size
        self._old_address = old_address
        self._sdna_index = sdna_index
        self._count = count
        self._data = data
        self._offset = offset
        self._index = index
        self._children = tuple(children)

    code        = property(fget=lambda self: self._code)
    size        = property(fget=lambda self: self._size)
    old_address = property(fget=lambda self: self._old_address)
    sdna_index  = property(fget=lambda self: self._sdna_index)
    count       = property(fget=lambda self: self._count)
    data        = property(fget=lambda self: self._data)
    offset      = property(fget=lambda self: self._offset)
    index       = property(fget=lambda self: self._index)
    children    = property(fget=lambda self: self._children)

    def adopt(self, index, children) -> 'Block':
        '''A copy of this block placed at index of the top level sequence
        and owning the given children.'''
        return self.__class__(
            self.code,
            self.size,
            self.old_address,
            self.sdna_index,
            self.count,
            self.data,
            offset=self.offset,
            index=index,
            children=children,
        )

    @classmethod
    def from_header(cls, header: BlockHeader, data, offset=None) -> 'Block':
        return cls(
            header.code.value,
            header.payload_size.value,
            header.old_address.value,
            header.sdna_index.value,
            header.count.value,
            data,
            offset=offset,
        )

    def __repr__(self):
        return '<%s(%r, sdna=%d, count=%d, size=%d, address=0x%x)>' % (
            self.__class__.__name__,
            self.code.rstrip(b'\x00').decode('latin1'),
            self.sdna_index,
            self.count,
            self.size,
            self.old_address,
        )

    def is_code(self, code) -> bool:
        return self.code == block_code(code)

    def stream(self) -> Stream:
        '''A cursor over the payload, offsets are relative to the payload.'''
        return Stream(self.data)


class BlendFile(object):
    '''The parsed content of a file: the header, the top level blocks, the catalog
    and the index of the addresses. Nothing changes after parse() returns it.

    This is the interface for who explores the file: every field is accessed
    by name through the catalog, e.g.

        blend = load('untitled.blend')
        obj = blend[blend.find_by_code('OB')]
        mesh = blend.dereference(obj, 'Object', '*data')
        totvert = blend.read_field(mesh, 'Mesh', 'totvert', 'i')
    '''

    def __init__(self, header: FileHeader, blocks: List[Block], catalog: Catalog, stream: Stream = None):
        self.header = header
        self.blocks = tuple(blocks)
        self.catalog = catalog
        self.stream = stream
        self.index = AddressIndex(self.blocks)
        self.navigator = Navigator(self)

    def __repr__(self):
        return '<%s(%s, blocks=%d)>' % (self.__class__.__name__, self.version, len(self.blocks))

    def __len__(self):
        return len(self.blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __getitem__(self, item) -> Block:
        return self.blocks[item]

    @property
    def version(self) -> str:
        return self.header.version.value.decode('latin1')

    def all_blocks(self) -> Iterator[Block]:
        '''Every block in file order, each owner followed by its children.'''
        for block in self.blocks:
            yield block
            yield from block.children

    def find_by_code(self, code, start=0) -> Optional[int]:
        '''Index of the first top level block with the code at or after start.'''
        code = block_code(code)
        for idx in range(start, len(self.blocks)):
            if self.blocks[idx].code == code:
                return idx

        return None

    def blocks_by_code(self, code) -> Iterator[Block]:
        code = block_code(code)
        return (_ for _ in self.blocks if _.code == code)

    def resolve(self, address: int) -> Optional[Block]:
        return self.index.resolve(address)

    def struct_name(self, block: Block) -> Optional[str]:
        return self.catalog.struct_name(block.sdna_index)

    def identify(self, block: Block, struct_name: str) -> bool:
        return self.catalog.identify(block.sdna_index, struct_name)

    def offset_of(self, struct_name: str, field_name: str) -> int:
        return self.catalog.offset_of(struct_name, field_name)

    def struct_size(self, struct_name: str) -> int:
        return self.catalog.struct_size(struct_name)

    def read(self, block: Block, offset: int, fmt: str):
        '''Unpack the struct format at the offset of the payload.

        The byte order is always little endian. A format with a single item
        returns the value, otherwise a tuple.'''
        fmt = '<' + fmt.lstrip('@=<>!')

        try:
            values = struct.unpack_from(fmt, block.data, offset)
        except struct.error as e:
            raise UnpackException('reading %r at %d of %r: %s' % (fmt, offset, block, e))

        return values[0] if len(values) == 1 else values

    def read_field(self, block: Block, struct_name: str, field_name: str, fmt: str, index=0):
        '''Read the field of the index-th instance of the struct in the block.

        The caller chooses the format, it's its responsibility that it matches
        the type of the field in the catalog: nothing is checked here.'''
        offset = index * self.struct_size(struct_name) + self.offset_of(struct_name, field_name)

        return self.read(block, offset, fmt)

    def read_pointer(self, block: Block, struct_name: str, field_name: str, index=0) -> int:
        return self.read_field(block, struct_name, field_name, 'Q', index=index)

    def read_string(self, block: Block, struct_name: str, field_name: str, index=0) -> str:
        '''Read a char array field up to its first null byte.'''
        size = self.catalog.resolver.size_of(struct_name, field_name)
        raw = self.read_field(block, struct_name, field_name, '%ds' % size, index=index)

        return raw.split(b'\x00', 1)[0].decode('latin1')

    def dereference(self, block: Block, struct_name: str, field_name: str, index=0) -> Optional[Block]:
        return self.resolve(self.read_pointer(block, struct_name, field_name, index=index))

    def id_name(self, block: Block, strip_code=True) -> str:
        '''The user visible name of an ID block (Object, Mesh, Scene...).

        The ID struct is always the first member so its fields are at the
        same offset in the block. The name starts with the two letters of
        the code of the block, stripped by default.'''
        name = self.read_string(block, 'ID', 'name[%d]' % ID_NAME_LENGTH)

        return name[2:] if strip_code else name


def _check_variant(header: FileHeader):
    pointer_size = header.pointer_size.value
    endianness = header.endianness.value

    if pointer_size != BlendPointerSize.PTR_8 or endianness != BlendEndianness.LITTLE_ENDIAN:
        raise UnsupportedVariantException(
            'only files with 8 bytes pointers and little endian are supported, found %s and %s' % (
                pointer_size, endianness))


def parse(data, compliant=Compliant.STRICT) -> BlendFile:
    '''Parse a whole file already in memory.

    Any error raises an exception, there is no partial result.'''
    stream = data if isinstance(data, Stream) else Stream(data)

    header = FileHeader(compliant=compliant)
    try:
        header.unpack(stream)
    except FormatException as e:
        e.chain.append('header')
        raise

    _check_variant(header)
    logger.debug('parsing %s' % header)

    # the top level blocks with the list of their children, frozen at the end
    owners: List[Tuple[Block, List[Block]]] = []
    catalog = None

    while not stream.empty:
        offset = stream.tell()

        # the last block can be only the code
        if stream.remaining < BLOCK_HEADER_SIZE and stream.peek(4) == BlendBlockCode.ENDB.value:
            logger.debug('short ENDB block at 0x%x' % offset)
            owners.append((Block(BlendBlockCode.ENDB.value, 0, 0, 0, 0, stream.view(0).data, offset=offset), []))
            break

        block_header = BlockHeader(compliant=compliant)
        try:
            block_header.unpack(stream)
            payload = stream.view(block_header.payload_size.value)
        except FormatException as e:
            e.chain.append('block at 0x%x' % offset)
            raise

        block = Block.from_header(block_header, payload.data, offset=offset)
        logger.debug('found %r at 0x%x' % (block, offset))

        if block.code == BlendBlockCode.DATA.value:
            if not owners:
                raise ConsistencyException('DATA block at 0x%x without a block owning it' % offset)
            owners[-1][1].append(block)
        else:
            owners.append((block, []))

            if block.code == BlendBlockCode.DNA1.value:
                if catalog is not None:
                    logger.warning('ignoring another DNA1 block at 0x%x' % offset)
                else:
                    try:
                        catalog = Catalog.build(payload, compliant=compliant)
                    except FormatException as e:
                        e.chain.append('DNA1')
                        raise
            elif block.code == BlendBlockCode.ENDB.value:
                break

        stream.align(4)
    else:
        logger.warning('no ENDB block, the file could be truncated')

    if catalog is None:
        raise FormatException('no DNA1 block found')

    blocks = [block.adopt(index, children) for index, (block, children) in enumerate(owners)]

    return BlendFile(header, blocks, catalog, stream=stream)


def load(path, compliant=Compliant.STRICT) -> BlendFile:
    '''Read the file at path and parse it'''
    logger.debug('loading \'%s\'' % path)
    return parse(Stream(str(path)), compliant=compliant)
