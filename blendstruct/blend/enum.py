'''
This module contains the constant values used throughout the .blend file format.

Note: use Enum for value that cannot ORed together, Flag for the others.
'''
from enum import Enum


class BlendPointerSize(Enum):
    '''Size of the pointers stored in the file (8th byte of the header)'''
    PTR_4 = b'_'
    PTR_8 = b'-'


class BlendEndianness(Enum):
    '''Byte ordering of the file (9th byte of the header)'''
    LITTLE_ENDIAN = b'v'
    BIG_ENDIAN    = b'V'


class BlendBlockCode(Enum):
    '''Block codes having a meaning for the container itself or used
    to seed the navigation.

    The codes for the ID blocks are two letters padded with zeroes: the same
    two letters prefix the user visible name of the block.'''
    DATA = b'DATA'  # owned by the previous non-DATA block
    DNA1 = b'DNA1'  # the struct catalog
    ENDB = b'ENDB'  # end of the file
    GLOB = b'GLOB'  # FileGlobal
    REND = b'REND'
    TEST = b'TEST'  # preview image
    USER = b'USER'

    SC = b'SC\x00\x00'  # Scene
    OB = b'OB\x00\x00'  # Object
    ME = b'ME\x00\x00'  # Mesh
    AR = b'AR\x00\x00'  # bArmature
    AC = b'AC\x00\x00'  # bAction
    GR = b'GR\x00\x00'  # Collection
    MA = b'MA\x00\x00'  # Material
    KE = b'KE\x00\x00'  # Key (shape key)
    WM = b'WM\x00\x00'  # wmWindowManager


class BlendObjectType(Enum):
    '''Values of Object.type'''
    OB_EMPTY    = 0
    OB_MESH     = 1
    OB_CURVE    = 2
    OB_SURF     = 3
    OB_FONT     = 4
    OB_MBALL    = 5
    OB_LAMP     = 10
    OB_CAMERA   = 11
    OB_SPEAKER  = 12
    OB_LIGHTPROBE = 13
    OB_LATTICE  = 22
    OB_ARMATURE = 25
    OB_GPENCIL  = 26


SDNA_LABEL = b'SDNA'

POINTER_SIZE = 8

ID_NAME_LENGTH = 66
