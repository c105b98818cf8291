"""Pydantic data models for the Economy Shorts Script Studio."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ScriptType(str, Enum):
    """Length mode of a generated script."""

    SHORTS = "shorts"
    LONGFORM = "longform"

    @property
    def scene_range(self) -> str:
        return "10~12개" if self is ScriptType.SHORTS else "35~50개"


class IdeaDraft(BaseModel):
    """An idea as returned by the model, before an id is assigned."""

    title: str
    premise: str


class Idea(IdeaDraft):
    """Represents a video idea the user can pick a script for."""

    id: str


class ScriptSection(BaseModel):
    """Represents one ordered section of a script."""

    id: int
    title: str
    content: str


class Script(BaseModel):
    """Represents a generated script."""

    title: str
    sections: list[ScriptSection]

    @property
    def text(self) -> str:
        """Full narration text, sections joined in order."""
        return "\n\n".join(section.content for section in self.sections)

    @property
    def length(self) -> int:
        return sum(len(section.content) for section in self.sections)


class SavedScript(Script):
    """A script as written to disk, with the length mode it was written for."""

    script_type: ScriptType | None = None


class Scene(BaseModel):
    """Represents a storyboard scene derived from a script."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    description: str
    image_prompt: str = Field(alias="imagePrompt")
    video_prompt: str = Field(alias="videoPrompt")
    image_path: str | None = None
    audio_path: str | None = None


class SceneDraft(BaseModel):
    """Scene shape requested from the model."""

    id: int
    description: str
    imagePrompt: str  # noqa: N815
    videoPrompt: str  # noqa: N815


class Storyboard(BaseModel):
    """Represents the storyboard of a script."""

    title: str
    scenes: list[Scene]

    @model_validator(mode="after")
    def sort_scenes(self) -> "Storyboard":
        """Sort scenes by id."""
        self.scenes.sort(key=lambda s: s.id)
        return self


class TextGenerationConfig(BaseModel):
    """Configuration for idea, script and storyboard generation."""

    model: str = "gemini-3-flash-preview"
    temperature: float | None = None


class ImageGenerationConfig(BaseModel):
    """Configuration for image generation."""

    model: str = "gemini-2.5-flash-image"
    aspect_ratio: str = "16:9"


class SpeechGenerationConfig(BaseModel):
    """Configuration for speech generation."""

    model: str = "gemini-2.5-flash-preview-tts"
    voice_name: str = "Kore"
    sample_rate: int = 24000


class RetryConfig(BaseModel):
    """Configuration for rate-limit retries."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_jitter: float = 0.5
