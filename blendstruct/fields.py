"""
A Field is "fundamental" datatype from the format point of view, something directly
unpackable from a stream without the need of knowing what surrounds it.
"""
import logging
import struct
from enum import Enum

from .enum import Compliant
from .meta import FieldBase, Endianess
from .properties import RecordPhase, resolve
from .exceptions import FormatException, UnpackException, MagicException


logger = logging.getLogger(__name__)


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, name=None, father=None, default=None,
                 endianess=Endianess.LITTLE_ENDIAN, compliant=Compliant.INHERIT, is_magic=False):
        super().__init__()
        self.name = name
        self.father = father
        self.default = default
        self.offset = None
        self.endianess = endianess
        self.compliant = compliant
        self.is_magic = is_magic

        self.init()

    def init(self):
        self._phase = RecordPhase.INIT
        self.offset = None
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.value)

    def is_compliant(self, level):
        '''Check the compliance level walking up the hierarchy while INHERIT is set.'''
        instance = self
        while instance is not None:
            if instance.compliant & level:
                return True
            if not instance.compliant & Compliant.INHERIT:
                break

            instance = instance.father

        return False

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def unpack(self, stream):
        '''Read the value at the actual position of the stream, leaving the
        stream just after the field.'''
        self._phase = RecordPhase.UNPACKING
        self.offset = stream.tell()
        self.value = self._unpack(stream)
        self._phase = RecordPhase.DONE

        return self.value

    def _unpack(self, stream):
        raise NotImplementedError(f"method {self.__class__.__name__}._unpack() not implemented")

    def _chain(self):
        return [self.name] if self.name else []

    def check_magic(self, value):
        if not self.is_magic or value == self.default:
            return

        logger.warning('the magic for field \'%s\' doesn\'t correspond: %r instead of %r' % (
            self.name, value, self.default))

        if self.is_compliant(Compliant.MAGIC):
            raise MagicException('expected %r, found %r' % (self.default, value), chain=self._chain())


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module unpacking
    integers from bytes.

    The main advantage is the possibility to indicate via the "enum" argument some subclass
    of enum.Enum so to have directly a representation of the integer value of the field itself.
    """

    def __init__(self, format, default=0, equals_to=None, enum=None, **kw):
        self.format = format
        self.enum = enum
        kw.setdefault('is_magic', equals_to is not None)
        super().__init__(default=default if equals_to is None else equals_to, **kw)

    def __repr__(self):
        if self.enum or not isinstance(self.value, int):
            return f'<{self.__class__.__name__}({self.value!r})>'

        return '<%s(%s)>' % (self.__class__.__name__, hex(self.value))

    def value_from_default(self):
        if not self.enum or isinstance(self.default, self.enum):
            return self.default

        try:
            return self.enum(self.default)
        except ValueError:
            return self.default

    def get_format(self):
        return '%s%s' % ('<' if self.endianess == Endianess.LITTLE_ENDIAN else '>', self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _unpack_enum(self, value) -> Enum:
        try:
            return self.enum(value)
        except ValueError:
            if self.is_compliant(Compliant.ENUM):
                raise UnpackException(
                    f'{self.enum.__name__} doesn\'t have element with value {value!r}', chain=self._chain())

            logger.warning(f'enum {self.enum!r} doesn\'t have element with value {value!r} in it')

            return value

    def _unpack(self, stream):
        value = struct.unpack(self.get_format(), stream.read(self.size))[0]
        if self.enum:
            value = self._unpack_enum(value)

        self.check_magic(value)

        return value


class StringField(Field):
    """Represent a contiguous chunk of bytes of fixed (or dependent) length."""

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError(f"StringField must have 'n' or 'default' indicated!")

        self._n = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __len__(self):
        return self.length

    @property
    def length(self):
        return resolve(self._n, self)

    def value_from_default(self):
        return self.default if self.default is not None else b''

    def _get_size(self):
        return len(self.value) if self._phase == RecordPhase.DONE else self.length

    def _unpack(self, stream):
        value = stream.read(self.length)
        self.check_magic(value)

        return value


class CStringField(Field):
    """A null-terminated string: the terminator is consumed but not part of the value."""

    def value_from_default(self):
        return self.default if self.default is not None else b''

    def __str__(self):
        return self.value.decode('latin1')

    def _get_size(self):
        return len(self.value) + 1

    def _unpack(self, stream):
        return stream.read_until(b'\x00')


class AlignField(Field):
    '''Skips bytes until the stream is aligned to the given boundary'''

    def __init__(self, alignment=4, **kw):
        self.alignment = alignment
        super().__init__(default=0, **kw)

    def _get_size(self):
        return self.value

    def _unpack(self, stream):
        return stream.align(self.alignment)


class ArrayField(Field):
    '''Unpack an array of fields.

    You indicate the number of elements via the parameter named "n", that can be
    an integer or a Dependency. The prototype "field_cls" is copied for every element.
    '''

    def __init__(self, field_cls, n=0, **kw):
        self.field_cls = field_cls
        self._n = n

        super().__init__(**kw)

    def value_from_default(self):
        return []

    def __getitem__(self, item):
        return self.value[item]

    def __len__(self):
        return len(self.value)

    def __iter__(self):
        return iter(self.value)

    @property
    def n(self):
        return resolve(self._n, self)

    def _get_size(self):
        return sum(element.size for element in self.value)

    def instance_element(self):
        return self.field_cls.create(father=self)  # pass the father so that we don't lose the hierarchy

    def _unpack(self, stream):
        n = self.n
        logger.debug('unpacking %d elements of %s' % (n, self.field_cls.__class__.__name__))

        elements = []
        for idx in range(n):
            element = self.instance_element()
            element.name = '%s[%d]' % (self.name, idx)
            try:
                element.unpack(stream)
            except FormatException as e:
                if not e.chain or e.chain[-1] != element.name:
                    e.chain.append(element.name)
                raise
            elements.append(element)

        return elements
