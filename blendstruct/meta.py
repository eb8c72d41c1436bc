import copy
import logging
from enum import Enum, auto


logger = logging.getLogger(__name__)


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()


class FieldDescriptor(object):
    """Wrapper around field access of a Record related class.

    The class attribute is only a prototype: each record instance gets its
    own copy the first time the field is accessed."""

    def __init__(self, field_instance: "Field", field_name: str):
        self.field = field_instance
        self.field.name = field_name

    def __get__(self, instance, type=None):
        if instance is None:
            return self.field

        data = instance.__dict__

        if self.field.name not in data:
            logger.debug("create new field for field named '%s'", self.field.name)
            data[self.field.name] = self.field.create(father=instance)

        return data[self.field.name]

    def __set__(self, instance, value):
        raise AttributeError(f"field '{self.field.name}' is read-only")


class FieldBase(object):

    def contribute_to_record(self, cls, name):
        if not getattr(cls, name, None):
            setattr(cls, name, FieldDescriptor(self, name))
        else:
            raise AttributeError(f'field {name} is already present in class {cls.__name__}')

    def create(self, father):
        '''Build a fresh instance out of this prototype.

        A shallow copy is enough since init() resets everything that
        depends on the unpacked data.'''
        instance = copy.copy(self)
        instance.father = father
        instance.init()
        return instance


class Meta(object):
    """Class containing metadata about the abstraction"""

    def __init__(self):
        self.fields = []


class MetaRecord(type):

    def __new__(cls, names, bases, attrs):
        '''Collects the fields in order of declaration, parents' fields first.'''
        module = attrs.pop('__module__')
        classcell = attrs.pop('__classcell__', None)

        new_attrs = {
            '__module__': module,
        }
        if classcell is not None:
            new_attrs['__classcell__'] = classcell
        new_cls = super(MetaRecord, cls).__new__(cls, names, bases, new_attrs)

        new_cls._meta = Meta()

        # handle inheritance
        parents = [_ for _ in bases if isinstance(_, MetaRecord)]
        for parent in parents:
            for obj_name in parent._meta.fields:
                obj = parent.__dict__[obj_name]
                setattr(new_cls, obj_name, obj)
                new_cls._meta.fields.append(obj_name)

        for obj_name, obj in attrs.items():
            new_cls.add_to_class(obj_name, obj)

        return new_cls

    def add_to_class(cls, name, value):
        if hasattr(value, 'contribute_to_record') and not isinstance(value, type):
            logger.debug('contribute_to_record() found for field \'%s\'' % name)
            cls._meta.fields.append(name)
            value.contribute_to_record(cls, name)
        else:
            setattr(cls, name, value)
