"""
Transcript data structures shared by the speaker labeling pipeline.

Segments arrive from a speech recognizer with start/end times in seconds
and finalized text. The labeling pipeline never mutates them in place;
it returns copies with the ``speaker`` field populated.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


def _format_timestamp(seconds: float) -> str:
    """Format seconds as mm:ss."""
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


@dataclass
class WordTiming:
    """Single word with its timing from transcription."""

    text: str
    start: float
    end: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {'text': self.text, 'start': self.start, 'end': self.end}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WordTiming':
        """Create from dictionary."""
        return cls(
            text=data.get('text', ''),
            start=float(data.get('start', 0.0)),
            end=float(data.get('end', 0.0))
        )


@dataclass
class TranscriptSegment:
    """
    One utterance span of a transcript.

    Attributes:
        start: Segment start time in seconds
        end: Segment end time in seconds
        text: Transcribed text
        speaker: Speaker label (e.g. 'Speaker 1'), set by the labeler
        words: Optional word-level timings
    """

    start: float
    end: float
    text: str
    speaker: Optional[str] = None
    words: Optional[List[WordTiming]] = None

    @property
    def duration(self) -> float:
        """Segment length in seconds (never negative)."""
        return max(0.0, self.end - self.start)

    def with_speaker(self, speaker: str) -> 'TranscriptSegment':
        """Return a copy of this segment carrying the given speaker label."""
        return replace(self, speaker=speaker)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            'start': self.start,
            'end': self.end,
            'text': self.text,
            'speaker': self.speaker,
        }
        if self.words is not None:
            data['words'] = [w.to_dict() for w in self.words]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TranscriptSegment':
        """Create from dictionary."""
        words = data.get('words')
        return cls(
            start=float(data.get('start', 0.0)),
            end=float(data.get('end', 0.0)),
            text=data.get('text', ''),
            speaker=data.get('speaker'),
            words=[WordTiming.from_dict(w) for w in words] if words is not None else None
        )


@dataclass
class Transcript:
    """
    Complete transcription result with metadata and ordered segments.

    Attributes:
        model: Name of the speech recognition model that produced it
        language: Transcript language code
        segments: Ordered transcript segments
    """

    model: str = ""
    language: str = ""
    segments: List[TranscriptSegment] = field(default_factory=list)

    @property
    def plain_text(self) -> str:
        """All segment texts joined by a single space."""
        return " ".join(s.text.strip() for s in self.segments)

    @property
    def prompt_text(self) -> str:
        """Timestamped, speaker-attributed text suitable for prompts."""
        lines = []
        for seg in self.segments:
            timestamp = f"[{_format_timestamp(seg.start)} - {_format_timestamp(seg.end)}]"
            speaker = f" {seg.speaker}:" if seg.speaker else ""
            lines.append(f"{timestamp}{speaker} {seg.text.strip()}")
        return "\n".join(lines)

    @property
    def speakers(self) -> List[str]:
        """Distinct speaker labels in order of first appearance."""
        seen: List[str] = []
        for seg in self.segments:
            if seg.speaker and seg.speaker not in seen:
                seen.append(seg.speaker)
        return seen

    def with_segments(self, segments: List[TranscriptSegment]) -> 'Transcript':
        """Return a copy of this transcript with replaced segments."""
        return replace(self, segments=list(segments))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'model': self.model,
            'language': self.language,
            'segments': [s.to_dict() for s in self.segments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transcript':
        """Create from dictionary."""
        return cls(
            model=data.get('model', ''),
            language=data.get('language', ''),
            segments=[TranscriptSegment.from_dict(s) for s in data.get('segments', [])]
        )
