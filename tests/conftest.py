import logging

import pytest

import adx_decode
from adx import AdxFrame, AdxStream, StreamHeader, SAMPLES_PER_BLOCK

SIGNATURE_OFFSET = 30


@pytest.fixture
def make_adx():
    """Factory building ADX file bytes from a list of frames (one AdxBlock per channel)."""
    def make(frames, num_channels=1, sample_rate=44100, num_samples=None, data_offset=SIGNATURE_OFFSET):
        if num_samples is None:
            num_samples = len(frames) * SAMPLES_PER_BLOCK
        header = StreamHeader(num_channels, sample_rate, num_samples, data_offset)
        return AdxStream(header, [AdxFrame(blocks) for blocks in frames]).get_bytes()
    return make


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    adx_decode.logger.handlers.clear()
    adx_decode.logger.setLevel(logging.NOTSET)
