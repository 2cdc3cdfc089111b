"""Shared pytest fixtures for showroom tests."""

import asyncio
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from models.product import ProductRecord  # noqa: E402
from services.errors import EncodeError, UpstreamError  # noqa: E402


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_product() -> ProductRecord:
    """A scraped product as the dashboard sends it back."""
    return ProductRecord(
        id=3,
        title="Calacatta Viola",
        image_url="https://agmimports.com/wp-content/uploads/CV1234.jpg",
        link="https://agmimports.com/product/calacatta-viola/",
        lot_number="CV1234",
        material="Marble",
        color="White and burgundy",
    )


class FakeTransformEngine:
    """Stands in for MediaTransformEngine: writes placeholder outputs, records calls.

    ``fail_on`` names an operation (reverse, concatenate, mix_audio,
    mux_audio_onto_video) that raises EncodeError instead. The workspace
    listing at the moment of failure is kept in ``snapshot``.
    """

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.calls: list[tuple[str, list[Path], Path]] = []
        self.snapshot: list[str] = []
        self.mix_gain: float | None = None

    async def _produce(self, op: str, output_path: Path, *inputs: Path) -> Path:
        # Yield to the loop like a real subprocess wait would
        await asyncio.sleep(0)
        output_path = Path(output_path)
        self.calls.append((op, [Path(p) for p in inputs], output_path))
        if self.fail_on == op:
            self.snapshot = sorted(p.name for p in output_path.parent.iterdir())
            raise EncodeError(f"FFmpeg failed ({op}): injected failure", diagnostics="injected")
        output_path.write_bytes(f"{op}:{output_path.name}".encode())
        return output_path

    async def reverse(self, input_path, output_path):
        return await self._produce("reverse", output_path, input_path)

    async def concatenate(self, ordered_paths, list_path, output_path, drop_audio=True):
        Path(list_path).write_text("\n".join(f"file '{p}'" for p in ordered_paths))
        return await self._produce("concatenate", output_path, *ordered_paths)

    async def mix_audio(self, track_a, track_b, output_path, track_b_gain=0.3):
        self.mix_gain = track_b_gain
        return await self._produce("mix_audio", output_path, track_a, track_b)

    async def mux_audio_onto_video(self, video_path, audio_path, output_path):
        return await self._produce("mux_audio_onto_video", output_path, video_path, audio_path)


class FakeScriptService:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.products: list[ProductRecord] = []

    async def generate_script(self, product):
        self.products.append(product)
        if self.fail:
            raise UpstreamError("script model unavailable")
        return f"Discover the timeless elegance of {product.title}."


class FakeNarrationService:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.texts: list[str] = []

    async def synthesize(self, text, stability=0.5, similarity_boost=0.75):
        self.texts.append(text)
        if self.fail:
            raise UpstreamError("ElevenLabs text-to-speech error: quota exceeded")
        return b"ID3" + b"\x00" * 200


class FakeScoreService:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.requests: list[dict] = []

    async def generate_score(self, prompt="", duration_seconds=24.0, prompt_influence=0.3):
        self.requests.append(
            {"prompt": prompt, "duration_seconds": duration_seconds, "prompt_influence": prompt_influence}
        )
        if self.fail:
            raise UpstreamError("ElevenLabs sound generation error: busy")
        return b"ID3" + b"\x01" * 200


@pytest.fixture
def fake_engine() -> FakeTransformEngine:
    return FakeTransformEngine()
