"""End-to-end tests on synthetic captures."""

import numpy as np
import pytest
from conftest import SAMPLES_PER_BIT, assemble, build_frame, modulate, silence

from sdr2mqtt import Capture, pipeline, set_config
from sdr2mqtt.frame import Battery, Command


def test_repeated_transmission_deduplicated(capture_bytes, frame_bits, decoder_config):
    capture = Capture.from_bytes(capture_bytes)

    sequences = pipeline.extract_sequences(capture, decoder_config)

    assert sequences == [frame_bits]


def test_distinct_frames_in_order(decoder_config):
    first = build_frame(command="001")
    second = build_frame(command="010", battery="0")
    raw = assemble(
        silence(50), modulate(first), silence(50), modulate(second), silence(50),
        modulate(first), silence(10),
    )

    sequences = pipeline.extract_sequences(Capture.from_bytes(raw), decoder_config)

    assert sequences == [first, second]


def test_silence_yields_nothing(decoder_config):
    capture = Capture.from_bytes(assemble(silence(5000)))
    assert pipeline.extract_sequences(capture, decoder_config) == []


def test_weak_signal_below_threshold(frame_bits, decoder_config):
    """Amplitude 1 gives power of at most 2, never above the threshold of 5."""
    raw = assemble(silence(20), modulate(frame_bits, amplitude=1.0), silence(20))
    assert pipeline.extract_sequences(Capture.from_bytes(raw), decoder_config) == []


def test_short_burst_ignored(decoder_config):
    """A burst below the minimum length is not even demodulated."""
    raw = assemble(silence(20), modulate("1" * 40), silence(20))
    assert pipeline.extract_sequences(Capture.from_bytes(raw), decoder_config) == []


def test_wrong_length_burst_excluded(decoder_config):
    """A 70-bit burst passes detection but is not a 64-bit frame."""
    raw = assemble(silence(20), modulate(build_frame() + "101010"), silence(20))
    assert pipeline.extract_sequences(Capture.from_bytes(raw), decoder_config) == []


def test_remainder_samples_do_not_add_bits(frame_bits, decoder_config):
    """A few extra active samples after the last symbol are discarded."""
    i, q = modulate(frame_bits)
    tail_i, tail_q = modulate("1", samples_per_bit=SAMPLES_PER_BIT - 1)
    raw = assemble(silence(10), (np.concatenate([i, tail_i]), np.concatenate([q, tail_q])))

    assert pipeline.extract_sequences(Capture.from_bytes(raw), decoder_config) == [frame_bits]


def test_global_config_is_used(capture_bytes, frame_bits, decoder_config):
    set_config(decoder_config)
    assert pipeline.extract_sequences(Capture.from_bytes(capture_bytes)) == [frame_bits]


def test_extract_file(capture_file, frame_bits, decoder_config):
    assert pipeline.extract_file(capture_file, decoder_config) == [frame_bits]


def test_decode_file(capture_file, decoder_config):
    frames = pipeline.decode_file(capture_file, decoder_config)

    assert len(frames) == 1
    frame = frames[0]
    assert frame.sync_valid
    assert frame.device_id == "0x00001"
    assert frame.command == Command.OPEN
    assert frame.battery == Battery.OK


def test_decode_file_keeps_sync_mismatch(tmp_path, decoder_config):
    path = tmp_path / "bad_sync.cu8"
    path.write_bytes(assemble(silence(10), modulate(build_frame(sync="0" * 16)), silence(10)))

    frames = pipeline.decode_file(path, decoder_config)

    assert len(frames) == 1
    assert not frames[0].sync_valid


def test_decode_missing_file(tmp_path, decoder_config):
    with pytest.raises(OSError):
        pipeline.decode_file(tmp_path / "missing.cu8", decoder_config)


def test_batch_extract_skips_unreadable(tmp_path, capture_file, frame_bits, decoder_config):
    empty = tmp_path / "empty.cu8"
    empty.write_bytes(b"")
    missing = tmp_path / "missing.cu8"

    results = pipeline.batch_extract([capture_file, missing, empty], decoder_config)

    assert results == {str(capture_file): [frame_bits], str(empty): []}


def test_deterministic(capture_bytes, decoder_config):
    capture = Capture.from_bytes(capture_bytes)
    assert pipeline.extract_sequences(capture, decoder_config) == pipeline.extract_sequences(
        capture, decoder_config
    )
