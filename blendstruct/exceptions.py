class BlendStructException(Exception):
    '''Base class to extend in order to throw exception in blendstruct.

    It takes an optional message and the chain of the layers that
    caused the exception, innermost first.
    '''

    def __init__(self, message=None, chain=None):
        self.message = message
        self.chain = chain if chain is not None else []
        super().__init__(message)

    def __str__(self):
        where = '.'.join(reversed(self.chain))
        if where and self.message:
            return f'{where}: {self.message}'

        return self.message or where


class FormatException(BlendStructException):
    '''The data is not decodable: nothing parsed so far is usable.'''
    pass


class UnpackException(FormatException):
    pass


class MagicException(FormatException):
    pass


class ConsistencyException(FormatException):
    '''The data is readable but it contradicts itself (e.g. an index out of range).'''
    pass


class UnsupportedVariantException(BlendStructException):
    '''The file is well formed but uses a pointer width or byte order
    we don't handle.'''
    pass


class LookupMissException(BlendStructException):
    pass


class CycleDetectedException(BlendStructException):

    def __init__(self, address, message=None, chain=None):
        self.address = address
        super().__init__(message or f'address 0x{address:x} already visited', chain=chain)
