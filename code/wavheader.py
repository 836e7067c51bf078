import struct

BITS_PER_SAMPLE = 16
WAVE_FORMAT_PCM = 0x0001

# Canonical 44-byte header, little-endian, in file order
WAVE_HEADER_FIELDS = (
    ('riff',            '4s'),    # b'RIFF'
    ('riff_size',       'I'),     # data_size + 36
    ('wave',            '4s'),    # b'WAVE'
    ('fmt',             '4s'),    # b'fmt '
    ('fmt_size',        'I'),     # 16 for PCM
    ('format_tag',      'H'),
    ('num_channels',    'H'),
    ('sample_rate',     'I'),
    ('byte_rate',       'I'),
    ('block_align',     'H'),
    ('bits_per_sample', 'H'),
    ('data',            '4s'),    # b'data'
    ('data_size',       'I'),
)

WAVE_HEADER_FORMAT = '<' + ''.join(fmt for _, fmt in WAVE_HEADER_FIELDS)
WAVE_HEADER_SIZE = struct.calcsize(WAVE_HEADER_FORMAT)


class WaveHeader:
    def __init__(self, num_channels, sample_rate, num_samples, sample_size=BITS_PER_SAMPLE):
        self.num_channels = num_channels
        self.sample_rate = sample_rate
        self.num_samples = num_samples
        self.sample_size = sample_size

    @property
    def block_align(self):
        return self.num_channels * (self.sample_size // 8)

    @property
    def byte_rate(self):
        return self.sample_rate * self.block_align

    @property
    def data_size(self):
        return self.num_samples * self.block_align

    def fields(self):
        return {
            'riff': b'RIFF',
            'riff_size': self.data_size + WAVE_HEADER_SIZE - 8,
            'wave': b'WAVE',
            'fmt': b'fmt ',
            'fmt_size': 16,
            'format_tag': WAVE_FORMAT_PCM,
            'num_channels': self.num_channels,
            'sample_rate': self.sample_rate,
            'byte_rate': self.byte_rate,
            'block_align': self.block_align,
            'bits_per_sample': self.sample_size,
            'data': b'data',
            'data_size': self.data_size,
        }

    def get_bytes(self):
        values = self.fields()
        if values['riff_size'] > 0xFFFFFFFF:
            raise ValueError("{} samples do not fit in a RIFF container".format(self.num_samples))

        return struct.pack(WAVE_HEADER_FORMAT, *(values[name] for name, _ in WAVE_HEADER_FIELDS))
