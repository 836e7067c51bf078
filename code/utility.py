from bitarray import bitarray
from bitarray.util import int2ba

def sign_extend(value, width):
    # Two's complement: 8..15 -> -8..-1 for width 4
    value &= (1 << width) - 1
    return value - ((value >> (width - 1)) << width)

def bitarray_from_int(i, width):
    if not 0 <= i < 2**width:
        raise ValueError(f"{i} does not fit in {width} unsigned bits")

    if width == 0:
        return bitarray()

    return int2ba(i, length=width, endian='big')

def bitarray_from_signed(i, width):
    if not -2**(width-1) <= i < 2**(width-1):
        raise ValueError(f"{i} does not fit in {width} signed bits")

    return int2ba(i, length=width, endian='big', signed=True)

def bitarray_from_bytes(data):
    bits = bitarray(endian='big')
    bits.frombytes(bytes(data))
    return bits
