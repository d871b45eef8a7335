import numpy as np
import pytest

try:
    import cupy as cp

    _CUPY_AVAILABLE = True
except ImportError:
    cp = None
    _CUPY_AVAILABLE = False

from sdr2mqtt.config import DEFAULT_LAYOUT, DecoderConfig, clear_config

SAMPLES_PER_BIT = 8
PREAMBLE = "10" * 12
DEVICE_BITS = "00000000000000000001"


def pytest_addoption(parser):
    parser.addoption(
        "--device",
        action="store",
        default="cpu",
        help="Device to run tests on: cpu, gpu, or all",
    )


def pytest_generate_tests(metafunc):
    if "backend_device" in metafunc.fixturenames:
        device_opt = metafunc.config.getoption("--device")
        if device_opt == "all":
            params = ["cpu", "gpu"]
        elif device_opt == "gpu":
            params = ["gpu"]
        else:
            params = ["cpu"]

        metafunc.parametrize("backend_device", params)


@pytest.fixture
def backend_device(request):
    """
    Fixture that returns the backend device name.
    Skips GPU tests if CuPy is not available or functional.
    """
    device = request.param
    if device == "gpu":
        if not _CUPY_AVAILABLE:
            pytest.skip("CuPy not installed, skipping GPU tests")
        try:
            cp.zeros(1)
        except Exception as e:
            pytest.skip(f"CuPy installed but not functional (missing libs?): {e}")

    return device


@pytest.fixture
def xp(backend_device):
    """Returns the array module (numpy or cupy) for the current backend."""
    if backend_device == "gpu":
        return cp
    return np


@pytest.fixture(autouse=True)
def _reset_global_config():
    clear_config()
    yield
    clear_config()


# ============================================================================
# SYNTHETIC CAPTURES
# ============================================================================


def build_frame(
    device_bits=DEVICE_BITS,
    command="001",
    battery="1",
    sync=DEFAULT_LAYOUT.sync_word,
    preamble=PREAMBLE,
):
    """Concatenates frame fields into one bit string."""
    return preamble + sync + device_bits + command + battery


def modulate(bits, samples_per_bit=SAMPLES_PER_BIT, amplitude=100.0, step=0.3):
    """
    Returns interleaved-ready ``(i, q)`` uint8 samples of a constant-envelope
    burst whose phase advances by ``+step`` per sample for '1' and ``-step``
    for '0'. The burst starts at phase 0.
    """
    steps = np.repeat([step if b == "1" else -step for b in bits], samples_per_bit)
    steps[0] = 0.0
    phase = np.cumsum(steps)
    i = np.clip(np.round(128 + amplitude * np.cos(phase)), 0, 255).astype(np.uint8)
    q = np.clip(np.round(128 + amplitude * np.sin(phase)), 0, 255).astype(np.uint8)
    return i, q


def silence(n):
    """``n`` samples at the unsigned center (zero power after normalization)."""
    return np.full(n, 128, dtype=np.uint8), np.full(n, 128, dtype=np.uint8)


def assemble(*parts):
    """Concatenates ``(i, q)`` parts and interleaves them into bytes."""
    i = np.concatenate([p[0] for p in parts])
    q = np.concatenate([p[1] for p in parts])
    raw = np.empty(2 * i.size, dtype=np.uint8)
    raw[0::2] = i
    raw[1::2] = q
    return raw.tobytes()


@pytest.fixture
def decoder_config():
    """Decoder constants matching the synthetic bursts."""
    return DecoderConfig(
        samples_per_bit=SAMPLES_PER_BIT,
        min_signal_length=48 * SAMPLES_PER_BIT,
        power_threshold=5,
    )


@pytest.fixture
def frame_bits():
    return build_frame()


@pytest.fixture
def capture_bytes(frame_bits):
    """Two identical transmissions separated by silence."""
    burst = modulate(frame_bits)
    return assemble(silence(100), burst, silence(150), burst, silence(60))


@pytest.fixture
def capture_file(tmp_path, capture_bytes):
    path = tmp_path / "capture.cu8"
    path.write_bytes(capture_bytes)
    return path
