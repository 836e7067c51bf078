import io

import numpy as np
import pytest

from adx import AdxBlock, AdxIOError, PredictorState
from adx_decode import calc_coefficients, decode, decode_block, interleave
from wavheader import WAVE_HEADER_SIZE


def ramp_block(scale_factor, start):
    return AdxBlock(scale_factor, [((start + i) % 16) - 8 for i in range(32)])


def reference_channel(blocks, sample_rate=44100):
    coef1, coef2 = calc_coefficients(sample_rate)
    prev = PredictorState()
    samples = []
    for b in blocks:
        samples.extend(decode_block(b.get_bytes(), prev, coef1, coef2))
    return samples


def decoded_pcm(data):
    out = io.BytesIO()
    header = decode(io.BytesIO(data), out)
    return header, out.getvalue()


def test_mono_passes_through():
    samples = list(range(-16, 16))
    result = interleave([samples])
    assert result.dtype == np.dtype("<i2")
    assert result.tolist() == samples


def test_stereo_alternates_left_and_right():
    left = list(range(32))
    right = list(range(100, 132))
    result = interleave([left, right])
    assert len(result) == 64
    assert result[0::2].tolist() == left
    assert result[1::2].tolist() == right


def test_truncated_count_keeps_whole_frames():
    left = list(range(32))
    right = list(range(100, 132))
    result = interleave([left, right], 3)
    assert result.tolist() == [0, 100, 1, 101, 2, 102]


def test_mono_stream_truncates_last_block(make_adx):
    blocks = [ramp_block(0x0040, 0), ramp_block(0x0080, 5)]
    data = make_adx([[b] for b in blocks], num_samples=40)

    header, wav = decoded_pcm(data)
    pcm = np.frombuffer(wav[WAVE_HEADER_SIZE:], dtype="<i2")

    assert header.num_channels == 1
    assert len(wav) == WAVE_HEADER_SIZE + 40 * 2
    assert pcm.tolist() == reference_channel(blocks)[:40]


def test_stereo_stream_interleaves_independent_channels(make_adx):
    left = [ramp_block(0x0100, 0), ramp_block(0x0020, 3)]
    right = [ramp_block(0x0007, 9), ramp_block(0x0300, 12)]
    data = make_adx([[l, r] for l, r in zip(left, right)], num_channels=2, num_samples=45)

    _, wav = decoded_pcm(data)
    pcm = np.frombuffer(wav[WAVE_HEADER_SIZE:], dtype="<i2")

    assert len(pcm) == 90
    assert pcm[0::2].tolist() == reference_channel(left)[:45]
    assert pcm[1::2].tolist() == reference_channel(right)[:45]


def test_exact_multiple_of_block_size(make_adx):
    blocks = [ramp_block(0x0010, 0), ramp_block(0x0010, 1)]
    _, wav = decoded_pcm(make_adx([[b] for b in blocks]))
    assert len(wav) == WAVE_HEADER_SIZE + 64 * 2


def test_empty_stream_writes_header_only(make_adx):
    _, wav = decoded_pcm(make_adx([], num_samples=0))
    assert len(wav) == WAVE_HEADER_SIZE


def test_missing_block_data_is_an_io_error(make_adx):
    data = make_adx([[ramp_block(0x0010, 0)]], num_samples=64)
    with pytest.raises(AdxIOError, match="Expected 18 bytes"):
        decoded_pcm(data)


@pytest.mark.parametrize("sample_rate", [22050, 32000, 48000])
def test_sample_rate_selects_coefficients(make_adx, sample_rate):
    blocks = [ramp_block(0x0200, 4)]
    _, wav = decoded_pcm(make_adx([[b] for b in blocks], sample_rate=sample_rate))
    pcm = np.frombuffer(wav[WAVE_HEADER_SIZE:], dtype="<i2")
    assert pcm.tolist() == reference_channel(blocks, sample_rate)
