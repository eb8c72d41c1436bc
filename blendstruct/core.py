"""
Core module for the abstraction of a binary layout

"""
import logging
from typing import Tuple, List, Dict

from .fields import Field
from .meta import MetaRecord
from .streams import Stream
from .exceptions import FormatException
from .properties import (
    get_root_from_record,
    RecordPhase,
)


logger = logging.getLogger(__name__)


class Record(Field, metaclass=MetaRecord):
    """
    Together with Field is the main class that defines a format: a Record
    is an ordered sequence of fields unpacked one after the other.

    A Record can be used as a field of another Record, and a Record subclass
    can be used as prototype for an ArrayField.

        class Pair(Record):
            type_index = fields.StructField('H')
            name_index = fields.StructField('H')

    Passing a Stream (or something a Stream can be built from) to the
    constructor unpacks the record immediately.
    """

    def __init__(self, stream=None, **kwargs):
        super().__init__(**kwargs)

        if stream is not None:
            self.unpack(stream if isinstance(stream, Stream) else Stream(stream))

    def init(self):
        self._phase = RecordPhase.INIT
        self.offset = None
        # drop the fields copied over from the prototype
        for name in self._meta.fields:
            self.__dict__.pop(name, None)

    @property
    def value(self):
        return self

    @value.setter
    def value(self, value):
        pass

    def get_ordered_fields_name(self) -> List[str]:
        return self._meta.fields

    def get_fields(self) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, instance) for each field.'''
        return [(_, getattr(self, _)) for _ in self.get_ordered_fields_name()]

    def __repr__(self):
        msg = []
        for field_name, field in self.get_fields():
            msg.append('%s=%s' % (field_name, repr(field)))
        return '<%s(%s)>' % (self.__class__.__name__, ','.join(msg))

    def __str__(self):
        msg = ''
        for field_name, field in self.get_fields():
            msg += '%s: %s\n' % (field_name, repr(field))
        return msg

    @property
    def root(self):
        '''Obtain the final father of this record'''
        return get_root_from_record(self)

    def _get_size(self):
        size = 0
        for _, field in self.get_fields():
            size += field.size

        return size

    @property
    def layout(self) -> Dict[str, Tuple[int, int]]:
        result = {}
        for name, field in self.get_fields():
            result[name] = (field.offset, field.size)

        return result

    def unpack(self, stream):
        '''Unpack all the fields in order of declaration starting from the
        actual position of the stream.

        Any FormatException raised by a field is re-raised with the name
        of the field appended to its chain, so that the caller knows
        where the data stopped making sense.'''
        self._phase = RecordPhase.UNPACKING
        self.offset = stream.tell()

        for field_name, field in self.get_fields():
            logger.debug('unpacking %s.%s at 0x%x' % (self.__class__.__name__, field_name, stream.tell()))

            try:
                field.unpack(stream)
            except FormatException as e:
                if not e.chain or e.chain[-1] != field_name:
                    e.chain.append(field_name)
                raise

        self._phase = RecordPhase.DONE

        return self
