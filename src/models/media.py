"""Media payload models exchanged over the API boundary."""

import base64
import binascii
import re
from dataclasses import dataclass

from services.errors import ValidationError

DATA_URI_PATTERN = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]+)*?);base64,(?P<data>.*)$", re.S)


@dataclass
class ClipPayload:
    """Decoded video bytes plus their content type."""

    data: bytes
    content_type: str = "video/mp4"

    @classmethod
    def from_data_uri(cls, uri: str) -> "ClipPayload":
        """Decode a ``data:<type>;base64,<payload>`` URI.

        Raises:
            ValidationError: If the URI is not base64 data or is empty
        """
        if not isinstance(uri, str):
            raise ValidationError("Video URL must be a base64 data URI")

        match = DATA_URI_PATTERN.match(uri.strip())
        if not match:
            raise ValidationError("Video URL must be a base64 data URI")

        try:
            data = base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Video data URI is not valid base64: {e}")

        if not data:
            raise ValidationError("Video data URI is empty")

        return cls(data=data, content_type=match.group("type") or "video/mp4")

    def to_data_uri(self) -> str:
        return to_data_uri(self.data, self.content_type)


def to_data_uri(data: bytes, content_type: str = "video/mp4") -> str:
    """Encode bytes as a base64 data URI."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


@dataclass
class AssemblyResult:
    """Output of one video assembly run."""

    video_url: str
    script: str
