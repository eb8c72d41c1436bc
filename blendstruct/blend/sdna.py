'''
# Structure DNA

The DNA1 block contains the description of every struct the producer knows about,
so that a reader can decode the data without knowing the layout in advance.

Its payload is made of four sections, each one starting with a four letters label

 1. NAME: the names of the fields, with the declarator syntax ("*next", "mat[4][4]")
 2. TYPE: the names of the types, primitive and not ("char", "float", "Object")
 3. TLEN: the length in bytes of each type, in the same order of TYPE
 4. STRC: the structs, each one is the index of its type and the list of its fields
    as pairs of (type index, name index)

the payload itself usually starts with the label "SDNA". Between the sections
the stream is aligned to four bytes.

See <https://archive.blender.org/wiki/index.php/Dev:Source/Architecture/File_Format/>.
'''
import logging
from typing import Dict, List, NamedTuple, Optional, Tuple

from ..core import Record
from .. import fields
from ..enum import Compliant
from ..exceptions import ConsistencyException
from ..properties import Dependency
from ..streams import Stream
from .enum import SDNA_LABEL
from .layout import OffsetResolver


logger = logging.getLogger(__name__)


class NameSection(Record):
    label = fields.StringField(4, default=b'NAME', is_magic=True)
    count = fields.StructField('I')
    names = fields.ArrayField(fields.CStringField(), n=Dependency('.count'))


class TypeSection(Record):
    padding = fields.AlignField(4)
    label   = fields.StringField(4, default=b'TYPE', is_magic=True)
    count   = fields.StructField('I')
    types   = fields.ArrayField(fields.CStringField(), n=Dependency('.count'))


class LengthSection(Record):
    '''There is no count here: there is a length for each type.'''
    padding = fields.AlignField(4)
    label   = fields.StringField(4, default=b'TLEN', is_magic=True)
    lengths = fields.ArrayField(fields.StructField('H'), n=Dependency('types.count'))


class FieldDefinition(Record):
    type_index = fields.StructField('H')
    name_index = fields.StructField('H')


class StructDefinition(Record):
    type_index = fields.StructField('H')
    n_fields   = fields.StructField('H')
    members    = fields.ArrayField(FieldDefinition(), n=Dependency('.n_fields'))


class StructSection(Record):
    padding = fields.AlignField(4)
    label   = fields.StringField(4, default=b'STRC', is_magic=True)
    count   = fields.StructField('I')
    structs = fields.ArrayField(StructDefinition(), n=Dependency('.count'))


class SDNA(Record):
    names   = NameSection()
    types   = TypeSection()
    lengths = LengthSection()
    structs = StructSection()


class TypeEntry(NamedTuple):
    name: str
    length: int


class FieldEntry(NamedTuple):
    type_index: int
    name_index: int


class StructEntry(NamedTuple):
    index: int
    type_index: int
    fields: Tuple[FieldEntry, ...]


class Catalog(object):
    '''Immutable tables decoded from the DNA1 block.

    The structs are identified by name, when more than one struct has the same
    name the first one (in order of the catalog) wins.'''

    def __init__(self, names: List[str], types: List[TypeEntry], structs: List[StructEntry],
                 compliant=Compliant.NONE):
        self.names = tuple(names)
        self.types = tuple(types)
        self.structs = tuple(structs)

        self._validate()

        self._struct_by_name: Dict[str, StructEntry] = {}
        for struct in self.structs:
            self._struct_by_name.setdefault(self.types[struct.type_index].name, struct)

        self._type_by_name: Dict[str, TypeEntry] = {}
        for entry in self.types:
            self._type_by_name.setdefault(entry.name, entry)

        self.resolver = OffsetResolver(self, compliant=compliant)

    def __repr__(self):
        return '<%s(names=%d, types=%d, structs=%d)>' % (
            self.__class__.__name__, len(self.names), len(self.types), len(self.structs))

    def __contains__(self, struct_name):
        return struct_name in self._struct_by_name

    def __len__(self):
        return len(self.structs)

    def _validate(self):
        n_names, n_types = len(self.names), len(self.types)

        for struct in self.structs:
            if struct.type_index >= n_types:
                raise ConsistencyException(
                    'struct #%d has type index %d out of %d' % (struct.index, struct.type_index, n_types))

            for field in struct.fields:
                if field.type_index >= n_types or field.name_index >= n_names:
                    raise ConsistencyException(
                        'struct #%d has a field (%d, %d) out of range' % (
                            struct.index, field.type_index, field.name_index))

    @classmethod
    def from_sdna(cls, sdna: SDNA, compliant=Compliant.NONE) -> 'Catalog':
        names = [str(_) for _ in sdna.names.names]
        types = [
            TypeEntry(str(name), length.value)
            for name, length in zip(sdna.types.types, sdna.lengths.lengths)
        ]
        structs = [
            StructEntry(
                index,
                struct.type_index.value,
                tuple(FieldEntry(_.type_index.value, _.name_index.value) for _ in struct.members),
            )
            for index, struct in enumerate(sdna.structs.structs)
        ]

        return cls(names, types, structs, compliant=compliant)

    @property
    def compliant(self):
        return self.resolver.compliant

    @classmethod
    def build(cls, data, compliant=Compliant.STRICT) -> 'Catalog':
        '''Decode the payload of a DNA1 block.

        data can be a Stream positioned at the start of the payload or anything
        a Stream can be built from.'''
        stream = data if isinstance(data, Stream) else Stream(data)

        if stream.peek(4) == SDNA_LABEL:
            stream.advance(4)

        sdna = SDNA(compliant=compliant)
        sdna.unpack(stream)

        catalog = cls.from_sdna(sdna, compliant=compliant)
        logger.debug('built %r' % catalog)

        return catalog

    def struct(self, struct_name: str) -> Optional[StructEntry]:
        return self._struct_by_name.get(struct_name)

    def struct_index(self, struct_name: str) -> Optional[int]:
        struct = self.struct(struct_name)
        return struct.index if struct else None

    def struct_name(self, sdna_index: int) -> Optional[str]:
        if not 0 <= sdna_index < len(self.structs):
            return None

        return self.types[self.structs[sdna_index].type_index].name

    def identify(self, sdna_index: int, struct_name: str) -> bool:
        return self.struct_name(sdna_index) == struct_name

    def type_length(self, type_name: str) -> Optional[int]:
        entry = self._type_by_name.get(type_name)
        return entry.length if entry else None

    def struct_size(self, struct_name: str) -> int:
        '''Length of the struct as declared by the catalog, zero if unknown.'''
        struct = self.struct(struct_name)
        if struct is None:
            return 0

        return self.types[struct.type_index].length

    def offset_of(self, struct_name: str, field_name: str) -> int:
        return self.resolver.offset_of(struct_name, field_name)

    def format_struct(self, struct_name: str, with_fields=True) -> str:
        '''C-like representation of the struct with the offset of each field'''
        if struct_name not in self:
            raise KeyError(struct_name)

        lines = ['struct %s (length: %d)' % (struct_name, self.struct_size(struct_name))]

        if with_fields:
            lines.append('{')
            for field in self.resolver.layout(struct_name):
                lines.append('\t%s %s;\t\t// %d' % (field.type_name, field.name, field.offset))
            lines.append('};')

        return '\n'.join(lines)
