"""FFmpeg-based media transforms for the video assembly pipeline.

Each transform is a single ffmpeg process launched with an argument vector
(no shell) and awaited to exit. Exit code 0 resolves; anything else raises
EncodeError with the tail of ffmpeg's stderr. Transforms are never retried.
"""

import asyncio
import json
import logging
import math
from pathlib import Path

from services.errors import EncodeError

logger = logging.getLogger(__name__)

DEFAULT_MUSIC_GAIN = 0.3
AUDIO_BITRATE = "192k"


def _escape_concat_path(path: Path) -> str:
    """Quote a path for the concat demuxer list format."""
    posix = path.resolve().as_posix()
    return "'" + posix.replace("'", "'\\''") + "'"


class MediaTransformEngine:
    """Reverse, concatenate, mix and mux media with ffmpeg."""

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        timeout: float = 600.0,
    ):
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    async def reverse(self, input_path: Path, output_path: Path) -> Path:
        """Time-reverse both video and audio streams of a clip."""
        self._require_inputs(input_path)
        cmd = [
            self.ffmpeg_path, "-y",
            "-i", str(input_path),
            "-map", "0:v:0",
            "-map", "0:a?",
            "-vf", "reverse",
            "-af", "areverse",
            str(output_path),
        ]
        await self._run_ffmpeg(cmd, f"reverse {Path(input_path).name}")
        return Path(output_path)

    async def concatenate(
        self,
        ordered_paths: list[Path],
        list_path: Path,
        output_path: Path,
        drop_audio: bool = True,
    ) -> Path:
        """Join clips in the given order with the concat demuxer (stream copy).

        All inputs must share codecs, resolution and frame rate. With
        ``drop_audio`` the output carries the video stream only.
        """
        if not ordered_paths:
            raise EncodeError("No clips to concatenate")
        self._require_inputs(*ordered_paths)

        lines = [f"file {_escape_concat_path(Path(p))}" for p in ordered_paths]
        try:
            Path(list_path).write_text("\n".join(lines) + "\n")
        except OSError as e:
            raise EncodeError(f"Cannot write concat list {Path(list_path).name}: {e}") from e

        cmd = [
            self.ffmpeg_path, "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", str(list_path),
            "-c", "copy",
        ]
        if drop_audio:
            cmd.append("-an")
        cmd.append(str(output_path))

        await self._run_ffmpeg(cmd, f"concatenate {len(ordered_paths)} clips")
        return Path(output_path)

    async def mix_audio(
        self,
        track_a: Path,
        track_b: Path,
        output_path: Path,
        track_b_gain: float = DEFAULT_MUSIC_GAIN,
    ) -> Path:
        """Overlay track B (attenuated) onto track A.

        Output duration matches track A regardless of track B's length.
        """
        if not isinstance(track_b_gain, (int, float)) or not math.isfinite(track_b_gain):
            raise ValueError(f"track_b_gain must be a finite number, got {track_b_gain!r}")
        if not 0.0 <= track_b_gain <= 1.0:
            raise ValueError(f"track_b_gain must be between 0 and 1, got {track_b_gain}")
        self._require_inputs(track_a, track_b)

        filter_complex = (
            f"[1:a]volume={track_b_gain}[score];"
            f"[0:a][score]amix=inputs=2:duration=first:dropout_transition=2[aout]"
        )
        cmd = [
            self.ffmpeg_path, "-y",
            "-i", str(track_a),
            "-i", str(track_b),
            "-filter_complex", filter_complex,
            "-map", "[aout]",
            str(output_path),
        ]
        await self._run_ffmpeg(cmd, "mix narration and score")
        return Path(output_path)

    async def mux_audio_onto_video(
        self, video_path: Path, audio_path: Path, output_path: Path
    ) -> Path:
        """Copy the video stream, encode the audio as AAC, stop at the shorter input."""
        self._require_inputs(video_path, audio_path)
        cmd = [
            self.ffmpeg_path, "-y",
            "-i", str(video_path),
            "-i", str(audio_path),
            "-map", "0:v:0",
            "-map", "1:a:0",
            "-c:v", "copy",
            "-c:a", "aac",
            "-b:a", AUDIO_BITRATE,
            "-shortest",
            str(output_path),
        ]
        await self._run_ffmpeg(cmd, "add audio track")
        return Path(output_path)

    async def probe_duration(self, path: Path) -> float:
        """Return the container duration of a media file in seconds."""
        self._require_inputs(path)
        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "json",
            str(path),
        ]
        stdout = await self._run_process(cmd, f"probe {Path(path).name}", tool="ffprobe")
        try:
            data = json.loads(stdout)
            return float(data["format"]["duration"])
        except (ValueError, KeyError, TypeError) as e:
            raise EncodeError(f"ffprobe returned no duration for {Path(path).name}") from e

    # ------------------------------------------------------------------
    # Process handling
    # ------------------------------------------------------------------

    @staticmethod
    def _require_inputs(*paths: Path) -> None:
        for path in paths:
            if not Path(path).is_file():
                raise EncodeError(f"Input file not found: {path}")

    async def _run_ffmpeg(self, cmd: list[str], description: str = "") -> None:
        """Run an ffmpeg command to completion.

        Raises:
            EncodeError: If ffmpeg cannot start, times out or exits non-zero
        """
        await self._run_process(cmd, description, tool="FFmpeg")

    async def _run_process(self, cmd: list[str], description: str, tool: str) -> str:
        logger.info(f"{tool}: {description}")
        logger.debug(f"Command: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise EncodeError(f"{tool} could not be started ({description}): {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise EncodeError(f"{tool} timed out after {self.timeout:.0f}s ({description})")

        stderr_text = (stderr or b"").decode("utf-8", errors="replace")
        if process.returncode != 0:
            logger.error(f"{tool} stderr: {stderr_text[-1000:]}")
            raise EncodeError(
                f"{tool} failed ({description}): {stderr_text[-500:].strip()}",
                diagnostics=stderr_text,
            )

        return (stdout or b"").decode("utf-8", errors="replace")
