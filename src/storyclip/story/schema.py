from pydantic import BaseModel, Field, model_validator


class ClipRange(BaseModel):
    start: float = Field(ge=0.0, description="Clip start (seconds)")
    end: float = Field(ge=0.0, description="Clip end (seconds)")

    @model_validator(mode="after")
    def end_after_start(self) -> "ClipRange":
        if self.end <= self.start:
            raise ValueError(f"end ({self.end}) must be > start ({self.start})")
        return self


class SceneEntry(BaseModel):
    timestamp: float = Field(ge=0.0)
    frame_data: str     # data:image/jpeg;base64,...


class Story(BaseModel):
    """A clip selection bound to its detected scenes, captions and notes."""
    schema_version: str = "1.0"
    id: str
    content: str = ""       # Generated story text; filled by an external generator
    scenes: list[SceneEntry] = Field(default_factory=list)
    notes: str = ""
    captions: str = ""      # captions_in_window() output for clip_range
    clip_range: ClipRange
    timestamp: int = Field(ge=0, description="Creation time, epoch milliseconds")
