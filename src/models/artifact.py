"""Pipeline artifact models for the video assembly workspace."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ArtifactKind(str, Enum):
    """Intermediate and final files produced during one assembly run.

    Values are file name templates; ``{key}`` is replaced by the run key.
    """

    INPUT_A = "video_{key}_0.mp4"
    INPUT_B = "video_{key}_1.mp4"
    REVERSED = "video_{key}_0_reversed.mp4"
    CONCAT_LIST = "concat_list_{key}.txt"
    COMPOSITE = "concatenated_no_audio_{key}.mp4"
    NARRATION = "voice_{key}.mp3"
    SCORE = "music_{key}.mp3"
    MIXED = "mixed_audio_{key}.mp3"
    FINAL = "final_{key}.mp4"

    def filename(self, key: str) -> str:
        return self.value.format(key=key)


@dataclass(frozen=True)
class PipelineArtifact:
    """A named file inside the workspace, owned by a single run."""

    kind: ArtifactKind
    path: Path
    run_key: str
