'''
# Field layout

The catalog gives, for each struct, only the ordered list of (type, name)
of its fields: the position of a field is the sum of the sizes of the
fields preceding it, there is no padding since the producer already
laid out the structs so that the declared lengths match the memory layout.

The size of a field is not only the length of its type since the name
carries some C declarator syntax:

 - "*next" or "**mat" is a pointer: it occupies a pointer whatever the type is
 - "(*func)()" is a pointer to function, same as above
 - "name[64]" or "mat[4][4]" are arrays: the length of the type is multiplied
   by every dimension

The names must be used verbatim when looking up a field, "*next" and not "next".
'''
import logging
import re
from typing import Dict, NamedTuple, Optional, Tuple

from ..enum import Compliant
from ..exceptions import LookupMissException
from .enum import POINTER_SIZE


logger = logging.getLogger(__name__)

_DIMENSION_RE = re.compile(r'\[(\d+)\]')
_BASE_NAME_RE = re.compile(r'^[(*]*(\w*)')


def is_pointer(field_name: str) -> bool:
    return field_name.startswith('*') or field_name.startswith('(*')


def array_dimensions(field_name: str) -> Tuple[int, ...]:
    '''"mat[4][4]" -> (4, 4), "co" -> ()'''
    return tuple(int(_) for _ in _DIMENSION_RE.findall(field_name))


def element_count(field_name: str) -> int:
    count = 1
    for dimension in array_dimensions(field_name):
        count *= dimension

    return count


def base_name(field_name: str) -> str:
    '''Strip the declarator syntax: "*next" -> "next", "(*func)()" -> "func", "name[64]" -> "name"'''
    return _BASE_NAME_RE.match(field_name).group(1)


def effective_size(field_name: str, type_length: int, pointer_size: int = POINTER_SIZE) -> int:
    '''Number of bytes a field occupies inside its struct.

    A pointer takes precedence over any array suffix.'''
    if is_pointer(field_name):
        return pointer_size

    return type_length * element_count(field_name)


class FieldLayout(NamedTuple):
    name: str
    type_name: str
    offset: int
    size: int

    @property
    def is_pointer(self):
        return is_pointer(self.name)

    @property
    def dimensions(self):
        return array_dimensions(self.name)

    @property
    def base_name(self):
        return base_name(self.name)


class OffsetResolver(object):
    '''Computes the position of the fields of the structs described by a catalog.

    A lookup for a struct or a field that doesn't exist resolves to the
    offset zero, unless the resolver is compliant with Compliant.LOOKUP:
    in that case LookupMissException is raised. Use field() when you need
    to know if a field exists.'''

    def __init__(self, catalog, compliant=Compliant.NONE, pointer_size=POINTER_SIZE):
        self.catalog = catalog
        self.compliant = compliant
        self.pointer_size = pointer_size
        self._layouts: Dict[str, Tuple[FieldLayout, ...]] = {}

    def layout(self, struct_name: str) -> Tuple[FieldLayout, ...]:
        '''All the fields of the struct with their offset and size, in order.'''
        if struct_name not in self._layouts:
            self._layouts[struct_name] = self._build_layout(struct_name)

        return self._layouts[struct_name]

    def _build_layout(self, struct_name):
        struct = self.catalog.struct(struct_name)
        if struct is None:
            return ()

        result = []
        offset = 0
        for field in struct.fields:
            name = self.catalog.names[field.name_index]
            type_entry = self.catalog.types[field.type_index]
            size = effective_size(name, type_entry.length, pointer_size=self.pointer_size)

            result.append(FieldLayout(name, type_entry.name, offset, size))

            offset += size

        return tuple(result)

    def field(self, struct_name: str, field_name: str) -> Optional[FieldLayout]:
        for field in self.layout(struct_name):
            if field.name == field_name:
                return field

        return None

    def find_field(self, struct_name: str, name: str) -> Optional[FieldLayout]:
        '''Like field() but matching the name stripped of the declarator syntax.'''
        for field in self.layout(struct_name):
            if field.base_name == name:
                return field

        return None

    def _miss(self, struct_name, field_name):
        message = 'field \'%s\' not found in struct \'%s\'' % (field_name, struct_name)
        if self.compliant & Compliant.LOOKUP:
            raise LookupMissException(message, chain=[field_name, struct_name])

        logger.debug(message)

    def offset_of(self, struct_name: str, field_name: str) -> int:
        field = self.field(struct_name, field_name)
        if field is None:
            self._miss(struct_name, field_name)
            return 0

        return field.offset

    def size_of(self, struct_name: str, field_name: str) -> int:
        field = self.field(struct_name, field_name)
        if field is None:
            self._miss(struct_name, field_name)
            return 0

        return field.size

    def computed_size(self, struct_name: str) -> int:
        '''Sum of the sizes of the fields, it should always be equal
        to the length declared in the catalog.'''
        return sum(field.size for field in self.layout(struct_name))
