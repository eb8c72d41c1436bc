import logging
from enum import Enum, auto


logger = logging.getLogger(__name__)


class RecordPhase(Enum):
    '''Enum to state the actual phase of a record'''
    INIT      = 0
    UNPACKING = auto()
    DONE      = auto()


def get_root_from_record(instance):
    return get_instance_from_record(instance, condition=lambda x: x.father is None)


def get_instance_from_class_name(instance, name):
    return get_instance_from_record(instance, condition=lambda x: x.__class__.__name__ == name)


def get_instance_from_record(instance, condition):
    while not condition(instance):
        instance = instance.father
        if instance is None:
            raise AttributeError('no record satisfying the condition in the hierarchy')

    return instance


class Dependency:
    '''This makes the relation between fields possible.

    In practice this class allows to write something like

        class Section(Record):
            count = fields.StructField('I')
            names = fields.ArrayField(fields.CStringField(), n=Dependency('.count'))

    and have the number of elements of 'names' read from the field named 'count'
    that was unpacked before it.

    The syntax of the expression is inspired from module resolution, the first
    char tells where the resolution starts:

     - '.' indicates we refer to a field at the same level
     - '@' indicates the the first component is the name of a class
     - otherwise the path starts from the root record
    '''
    def __init__(self, expression):
        self.expression = expression

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        fields_path = self.expression.split('.')
        # '.count'.split(".") -> ['', 'count']
        # 'types.count'.split(".") -> ['types', 'count']

        if fields_path[0] == '':
            field = instance.father
            fields_path = fields_path[1:]
        elif fields_path[0].startswith('@'):
            field = get_instance_from_class_name(instance, fields_path[0][1:])
            fields_path = fields_path[1:]
        else:
            field = get_root_from_record(instance)

        for component_name in fields_path:
            field = getattr(field, component_name)

        return field

    def resolve(self, instance):
        '''With this method we resolve the attribute with respect to the instance
        passed as argument.'''
        value = self.resolve_field(instance).value
        logger.debug('%r resolved with value %s' % (self, value))

        return value


def resolve(value, instance):
    '''Returns value itself or its resolution if it's a Dependency.'''
    if isinstance(value, Dependency):
        return value.resolve(instance)

    return value
