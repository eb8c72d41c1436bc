import logging

from .exceptions import UnpackException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a bounds-tracked cursor over an immutable buffer.

    Positions are always absolute offsets into the underlying buffer, so that
    align() gives the same result the producer had when writing the file.
    A Stream never copies the buffer: view() returns a new cursor over a
    slice of the same memory.'''
    def __init__(self, obj, start=0, end=None):
        '''Here we normalize the object in order to be accessed as a memoryview'''
        self.obj = obj
        self.history = []

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            raise ValueError('\'%s\' is the wrong kind of object to build a stream from' % obj.__class__.__name__)

        self.buffer = init_method()
        self.start = start
        self.end = len(self.buffer) if end is None else end

        if not (0 <= self.start <= self.end <= len(self.buffer)):
            raise ValueError('bounds (%d, %d) outside the buffer' % (self.start, self.end))

    def __repr__(self):
        return '<%s(0x%x, 0x%x)>' % (self.__class__.__name__, self.start, self.end)

    def __len__(self):
        return self.remaining

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        with open(self.obj, 'rb') as f:
            return memoryview(f.read())

    def init_bytes(self):
        '''We think these are raw bytes'''
        return memoryview(self.obj)

    def init_bytearray(self):
        # a copy, so nobody can change the data under our feet
        return memoryview(bytes(self.obj))

    def init_memoryview(self):
        return self.obj.toreadonly()

    @property
    def empty(self):
        return self.start >= self.end

    @property
    def remaining(self):
        return max(self.end - self.start, 0)

    def tell(self):
        return self.start

    def seek(self, offset):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        self.start = offset

        return self

    def advance(self, n=1):
        self.start += n

        return self

    def align(self, alignment=4):
        '''Move forward to the next multiple of alignment, returning
        the number of bytes skipped.'''
        misalign = self.start % alignment
        if misalign == 0:
            return 0

        self.advance(alignment - misalign)

        return alignment - misalign

    def _check(self, n):
        if n < 0 or self.start + n > self.end:
            raise UnpackException(
                'reading %d bytes at 0x%x goes past the end (0x%x)' % (n, self.start, self.end))

    def peek(self, n):
        '''Return at most n bytes without moving the cursor.'''
        return bytes(self.buffer[self.start:min(self.start + n, self.end)])

    def view(self, n):
        '''Return a cursor over the next n bytes and move past them.'''
        self._check(n)
        sub = self.__class__(self.buffer, start=self.start, end=self.start + n)
        self.advance(n)

        return sub

    def read(self, n):
        self._check(n)
        data = bytes(self.buffer[self.start:self.start + n])
        self.advance(n)

        return data

    def read_until(self, terminator=b'\x00'):
        '''Read up to the terminator, that is consumed but not returned.'''
        data = bytes(self.buffer[self.start:self.end])
        index = data.find(terminator)

        if index < 0:
            raise UnpackException('terminator %r not found starting at 0x%x' % (terminator, self.start))

        self.advance(index + len(terminator))

        return data[:index]

    def read_all(self):
        return self.read(self.remaining)

    @property
    def data(self):
        '''The memory between the bounds, without copying it.'''
        return self.buffer[self.start:self.end]

    def save(self):
        self.history.append(self.start)

    def restore(self):
        self.start = self.history.pop()
