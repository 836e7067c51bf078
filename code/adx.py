from bitarray import bitarray

from utility import *

SAMPLES_PER_BLOCK = 32      # Samples per block, per channel
BYTES_PER_BLOCK = 18        # 2-byte scale + 16 bytes of nibbles
HEADER_SIZE = 16            # Fixed part of the header the decoder reads
CUTOFF_FREQUENCY = 500.0    # Hz, prediction filter design frequency

SIGNATURE = b'\x80(c)CRI'
SUPPORTED_CHANNEL_COUNTS = (1, 2)

# Fields the decoder ignores, written with the values CRI's encoder uses
ENCODING_TYPE = 3
BIT_DEPTH = 4


class AdxError(Exception):
    pass

class AdxIOError(AdxError, IOError):
    pass

class InvalidFormatError(AdxError, ValueError):
    pass

class UnsupportedChannelLayoutError(AdxError, ValueError):
    pass


class StreamHeader:
    """
    Parsed stream header.

    data_offset is the position of the copyright signature, i.e. the raw
    header offset minus 2. Compressed blocks start right after it.
    """

    def __init__(self, num_channels, sample_rate, num_samples, data_offset):
        self.num_channels = num_channels
        self.sample_rate = sample_rate
        self.num_samples = num_samples
        self.data_offset = data_offset

    @property
    def raw_offset(self):
        return self.data_offset + 2

    @property
    def blocks_start(self):
        return self.data_offset + len(SIGNATURE) - 1

    @property
    def frame_size(self):
        return BYTES_PER_BLOCK * self.num_channels

    @property
    def num_frames(self):
        return -(-self.num_samples // SAMPLES_PER_BLOCK)

    def get_bytes(self):
        if self.data_offset < HEADER_SIZE:
            raise ValueError("Signature would overlap the fixed header")

        bits = bitarray(HEADER_SIZE * 8, endian='big')

        bits[0:16] = bitarray_from_int(0x8000, 16)
        bits[16:32] = bitarray_from_int(self.raw_offset, 16)
        bits[32:40] = bitarray_from_int(ENCODING_TYPE, 8)
        bits[40:48] = bitarray_from_int(BYTES_PER_BLOCK, 8)
        bits[48:56] = bitarray_from_int(BIT_DEPTH, 8)
        bits[56:64] = bitarray_from_int(self.num_channels, 8)
        bits[64:96] = bitarray_from_int(self.sample_rate, 32)
        bits[96:128] = bitarray_from_int(self.num_samples, 32)

        padding = bitarray((self.data_offset - HEADER_SIZE) * 8, endian='big')
        padding.setall(0)

        return (bits + padding + bitarray_from_bytes(SIGNATURE[1:])).tobytes()

    def __repr__(self):
        return "StreamHeader(channels={}, rate={}, samples={}, offset={})".format(
            self.num_channels, self.sample_rate, self.num_samples, self.data_offset)


class PredictorState:
    # The two most recent decoded samples of one channel
    def __init__(self, s1=0, s2=0):
        self.s1 = s1
        self.s2 = s2

    def __eq__(self, other):
        if not isinstance(other, PredictorState):
            return NotImplemented
        return (self.s1, self.s2) == (other.s1, other.s2)

    def __repr__(self):
        return "PredictorState(s1={}, s2={})".format(self.s1, self.s2)


class AdxBlock:
    # scale_factor is stored as in the stream; the decoder uses scale_factor + 1
    def __init__(self, scale_factor, deltas):
        if len(deltas) != SAMPLES_PER_BLOCK:
            raise ValueError("A block holds exactly {} deltas".format(SAMPLES_PER_BLOCK))
        self.scale_factor = scale_factor
        self.deltas = deltas

    def get_bytes(self):
        scale_bits = bitarray_from_int(self.scale_factor, 16)

        return sum([bitarray_from_signed(d, 4) for d in self.deltas], scale_bits).tobytes()


class AdxFrame:
    # One block per channel, left first
    def __init__(self, blocks):
        self.blocks = blocks

    def get_bytes(self):
        return b''.join([block.get_bytes() for block in self.blocks])


class AdxStream:
    def __init__(self, header, frames):
        self.header = header
        self.frames = frames

    def get_bytes(self):
        return self.header.get_bytes() + \
               b''.join([frame.get_bytes() for frame in self.frames])
