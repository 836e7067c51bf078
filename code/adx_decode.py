import argparse
import logging
import math
import os
import sys

import numpy as np

from adx import *
from bitinputstream import BitInputStream
from utility import sign_extend
from wavheader import WaveHeader

WAVE_EXTENSION = ".wav"

logger = logging.getLogger(__name__)

def main(argv):
    args = parse_args(argv[1:], prog=os.path.basename(argv[0]))
    setup_logging(logging.WARNING if args.quiet else logging.INFO)

    output_path = args.output if args.output is not None else change_ext(args.input, WAVE_EXTENSION)

    try:
        convert(args.input, output_path)
    except (AdxError, OSError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1

    logger.info("Done!")
    return 0

def cli():
    sys.exit(main(sys.argv))

def parse_args(args=None, prog=None):
    parser = argparse.ArgumentParser(prog=prog, description="Convert a CRI ADX stream to a 16-bit PCM WAV file.")
    parser.add_argument("input", help="ADX file to convert.")
    parser.add_argument("output", nargs="?", default=None, help="WAV file to write. If omitted, the input path with a .wav extension is used.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only report errors.")
    return parser.parse_args(args=args)

def setup_logging(level):
    logger.setLevel(level)
    if not logger.handlers:
        formatter = logging.Formatter("%(message)s")
        console_handler = logging.StreamHandler(stream=sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

def change_ext(path, ext):
    return os.path.splitext(path)[0] + ext

def convert(input_path, output_path):
    """
    Convert the ADX file at input_path to a WAV file at output_path.

    The header and signature are validated before the output is created.
    A failure while decoding blocks aborts the conversion and leaves the
    partially written output file on disk.
    """
    try:
        input_file = open(input_path, "rb")
    except OSError as e:
        raise AdxIOError(f"Can't open input: {e}") from e

    with BitInputStream(input_file) as inp:
        header = read_header(inp)

        try:
            with open(output_path, "wb") as out:
                logger.info(f"Converting {input_path} -> {output_path}")
                write_stream(inp, header, out)
        except AdxError:
            raise
        except OSError as e:
            raise AdxIOError(f"Can't write output: {e}") from e

    return header

def decode(inp, out):
    # Whole-stream decode between two already open binary files
    stream = BitInputStream(inp)
    header = read_header(stream)
    write_stream(stream, header, out)
    return header

def read_header(inp):
    try:
        inp.read_uint(16)                       # 0x8000 marker
        raw_offset = inp.read_uint(16)
        inp.read_uint(24)                       # Encoding, block size, bit depth
        num_channels = inp.read_uint(8)
        sample_rate = inp.read_uint(32)
        num_samples = inp.read_uint(32)
    except EOFError as e:
        raise AdxIOError(f"Error reading header: {e}") from e

    data_offset = raw_offset - 2

    logger.info(f"Channels: {num_channels}")
    logger.info(f"Freq: {sample_rate} Hz")
    logger.info(f"Size: {num_samples} samples")
    logger.info(f"Offset: {data_offset}")

    if data_offset < 0:
        raise InvalidFormatError(f"Invalid ADX! Data offset {data_offset} points before the start of the stream")

    # The leading 0x80 is a framing marker and is not compared
    inp.seek(data_offset)
    try:
        signature = SIGNATURE[:1] + inp.read_bytes(len(SIGNATURE) - 1)
    except EOFError as e:
        raise AdxIOError(f"Error reading signature: {e}") from e

    if signature != SIGNATURE:
        raise InvalidFormatError(f"Invalid ADX! Expected {SIGNATURE[1:]!r} at offset {data_offset}, found {signature[1:]!r}")

    if num_channels not in SUPPORTED_CHANNEL_COUNTS:
        raise UnsupportedChannelLayoutError(f"Unsupported channel count: {num_channels}")

    return StreamHeader(num_channels, sample_rate, num_samples, data_offset)

def calc_coefficients(sample_rate, cutoff=CUTOFF_FREQUENCY):
    z = math.cos(2.0 * math.pi * cutoff / sample_rate)
    a = math.sqrt(2.0) - z
    b = math.sqrt(2.0) - 1.0
    c = (a - math.sqrt((a + b) * (a - b))) / b
    coef1 = math.floor(8192.0 * c)
    coef2 = math.floor(-4096.0 * c * c)
    return coef1, coef2

def decode_block(block, prev, coef1, coef2):
    """
    Decode one 18-byte single-channel block into 32 PCM samples.

    prev holds the channel's last two samples and is updated in place.
    Samples are clipped to 16 bits before they are fed back into the filter.
    """
    if len(block) != BYTES_PER_BLOCK:
        raise ValueError(f"Expected a {BYTES_PER_BLOCK}-byte block, got {len(block)} bytes")

    scale = int.from_bytes(block[0:2], "big") + 1
    s1, s2 = prev.s1, prev.s2

    result = []
    for byte in block[2:]:
        # High nibble first
        for d in (sign_extend(byte >> 4, 4), sign_extend(byte & 0x0F, 4)):
            s0 = d * scale + ((coef1 * s1 + coef2 * s2) >> 12)
            s0 = min(max(s0, -32768), 32767)
            result.append(s0)
            s2, s1 = s1, s0

    prev.s1, prev.s2 = s1, s2
    return result

def decode_frame(frame, prevs, coef1, coef2):
    return [decode_block(frame[i * BYTES_PER_BLOCK:(i + 1) * BYTES_PER_BLOCK], prev, coef1, coef2)
            for i, prev in enumerate(prevs)]

def interleave(channel_samples, count=SAMPLES_PER_BLOCK):
    # (32, channels) matrix, row i is frame i: L0,R0,L1,R1,...
    frames = np.column_stack(channel_samples).astype("<i2")
    return frames[:count].reshape(-1)

def write_stream(inp, header, out):
    coef1, coef2 = calc_coefficients(header.sample_rate)

    out.write(WaveHeader(header.num_channels, header.sample_rate, header.num_samples).get_bytes())

    prevs = [PredictorState() for _ in range(header.num_channels)]
    remaining = header.num_samples

    inp.seek(header.blocks_start)
    for _ in range(header.num_frames):
        try:
            frame = inp.read_bytes(header.frame_size)
        except EOFError as e:
            raise AdxIOError(f"Error reading ADX data: {e}") from e

        # The last frame is decoded in full, only the declared samples are written
        count = min(remaining, SAMPLES_PER_BLOCK)
        samples = decode_frame(frame, prevs, coef1, coef2)
        out.write(interleave(samples, count).tobytes())

        remaining -= count

if __name__ == "__main__":
    cli()
