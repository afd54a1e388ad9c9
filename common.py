# Common functions, templates and errors for big-endian GameCube/Wii binary structures

import sys
import struct
from array import array
from enum import Enum

class TextureError(Exception):
    pass

class InvalidImage(TextureError, ValueError):
    """The source image has no texels (non-positive bounds) or too few of them."""

class BufferAllocationError(TextureError):
    """The encoded payload size is non-positive or cannot be allocated."""

class SerializationError(TextureError):
    """A header field could not be packed into (or read from) its fixed-width slot."""

class Readable(object):
    def __init__(self, fin=None, pos=None):
        super().__init__()
        if fin is not None:
            if pos is not None:
                fin.seek(pos)
            self.read(fin)

class ReadableStruct(Readable):
    # Subclasses set `header` (a big-endian Struct) and `fields`, in the same order.
    # A field is either a name, or a (name, type) pair for enum/bool fields.
    def read(self, fin):
        buf = fin.read(self.header.size)
        try:
            values = self.header.unpack(buf)
        except struct.error as e:
            raise SerializationError("%s: expected %d bytes, got %d" % (self.__class__.__name__, self.header.size, len(buf))) from e
        for field, value in zip(self.fields, values):
            if isinstance(field, str):
                setattr(self, field, value)
            else:
                fieldName, fieldType = field
                try:
                    setattr(self, fieldName, fieldType(value))
                except ValueError as e:
                    raise SerializationError("%s: bad %s %r" % (self.__class__.__name__, fieldName, value)) from e
    def as_tuple(self):
        return tuple(getattr(self, field) if isinstance(field, str) else getattr(self, field[0]).value if isinstance(getattr(self, field[0]), Enum) else int(getattr(self, field[0])) for field in self.fields)
    def pack(self):
        try:
            return self.header.pack(*self.as_tuple())
        except struct.error as e:
            raise SerializationError("%s: %s" % (self.__class__.__name__, e)) from e
    def write(self, fout):
        fout.write(self.pack())
    def __repr__(self):
        return self.__class__.__name__ + " " + " ".join([(field if isinstance(field, str) else field[0])+"="+repr(getattr(self, (field if isinstance(field, str) else field[0]))) for field in self.fields])
    def __eq__(self, other):
        return type(self) is type(other) and self.as_tuple() == other.as_tuple()

def swapArray(a):
    if sys.byteorder == 'little':
        b = array(a.typecode, a)
        b.byteswap()
        return b
    else:
        return a
