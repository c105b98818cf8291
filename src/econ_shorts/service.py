"""Service for interacting with the Google Gemini API."""

import asyncio
import base64
import binascii
import functools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from google import genai
from google.genai import types
from pydantic import TypeAdapter, ValidationError

from .audio import pcm_to_wav
from .credentials import CredentialStore
from .errors import (
    EmptyResponseError,
    InvalidCredentialError,
    MalformedResponseError,
    NoAudioResultError,
    NoImageResultError,
)
from .models import (
    Idea,
    IdeaDraft,
    ImageGenerationConfig,
    RetryConfig,
    Scene,
    SceneDraft,
    Script,
    ScriptType,
    SpeechGenerationConfig,
    TextGenerationConfig,
)
from .prompts import (
    FALLBACK_IMAGE_STYLE,
    PRIMARY_IMAGE_STYLE,
    idea_prompt,
    image_prompt,
    script_prompt,
    storyboard_prompt,
)
from .retry import with_retry

logger = logging.getLogger(__name__)

_IDEAS = TypeAdapter(list[IdeaDraft])
_SCENES = TypeAdapter(list[Scene])


def _log_failures(label: str) -> Callable:
    """Log a failed request under ``label`` and let the error propagate."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.error("%s error: %s", label, e)
                raise

        return wrapper

    return decorator


def _response_text(response: types.GenerateContentResponse) -> str:
    text = response.text
    if not text:
        raise EmptyResponseError()
    return text


def _as_base64(data: bytes | str) -> str:
    if isinstance(data, bytes):
        return base64.b64encode(data).decode("ascii")
    return data


def _inline_data(response: types.GenerateContentResponse) -> str | None:
    """Return the first inline payload of the first candidate, base64 encoded."""
    candidates = response.candidates or []
    if not candidates or not candidates[0].content:
        return None
    for part in candidates[0].content.parts or []:
        if part.inline_data and part.inline_data.data:
            return _as_base64(part.inline_data.data)
    return None


def _reference_part(reference_image: str | None) -> types.Part | None:
    """Decode a base64 or data-URI reference image into a request part."""
    if not reference_image:
        return None
    data = reference_image
    if "base64," in data:
        data = data.split("base64,", 1)[1]
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Reference image processing failed; continuing without it.")
        return None
    return types.Part.from_bytes(data=raw, mime_type="image/png")


class GeminiService:
    """Service to interact with Google Gemini API.

    The API key is read from the credential store at the start of every
    request, so a key set or cleared between calls takes effect on the next
    call while a call in flight keeps the key it started with.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        text_config: TextGenerationConfig | None = None,
        image_config: ImageGenerationConfig | None = None,
        speech_config: SpeechGenerationConfig | None = None,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self.credentials = credentials
        self.text_config = text_config or TextGenerationConfig()
        self.image_config = image_config or ImageGenerationConfig()
        self.speech_config = speech_config or SpeechGenerationConfig()
        self.retry_config = retry_config or RetryConfig()
        self.sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def _client(self) -> genai.Client:
        api_key = self.credentials.get()
        if not api_key:
            msg = (
                "API Key is missing. "
                "Set GEMINI_API_KEY env var or run `econ-shorts key set`."
            )
            raise InvalidCredentialError(msg)
        return genai.Client(api_key=api_key)

    async def _generate(
        self,
        client: genai.Client,
        **request: Any,
    ) -> types.GenerateContentResponse:
        return await with_retry(
            lambda: client.aio.models.generate_content(**request),
            self.retry_config.max_attempts,
            base_delay=self.retry_config.base_delay,
            max_jitter=self.retry_config.max_jitter,
            sleep=self.sleep,
        )

    def _json_config(self, schema: Any) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
            temperature=self.text_config.temperature,
        )

    @_log_failures("Video ideas")
    async def generate_video_ideas(self, keyword: str | None = None) -> list[Idea]:
        """Ask for five viral title ideas on ``keyword``.

        The model does not return ids, so each idea gets
        ``idea-{index}-{timestamp_ms}``.

        Raises:
            EmptyResponseError: If the model returned no text.
            MalformedResponseError: If the text is not a list of ideas.

        """
        client = self._client()
        response = await self._generate(
            client,
            model=self.text_config.model,
            contents=idea_prompt(keyword),
            config=self._json_config(list[IdeaDraft]),
        )
        try:
            drafts = _IDEAS.validate_json(_response_text(response))
        except ValidationError as e:
            msg = f"Invalid ideas response: {e}"
            raise MalformedResponseError(msg) from e

        stamp = int(time.time() * 1000)
        return [
            Idea(id=f"idea-{i}-{stamp}", **draft.model_dump())
            for i, draft in enumerate(drafts)
        ]

    @_log_failures("Generate script")
    async def generate_script(
        self,
        title: str,
        protagonist_name: str,
        script_type: ScriptType = ScriptType.SHORTS,
    ) -> Script:
        """Write a script for ``title`` narrated by ``protagonist_name``.

        Raises:
            EmptyResponseError: If the model returned no text.
            MalformedResponseError: If ``sections`` is missing or malformed.

        """
        client = self._client()
        response = await self._generate(
            client,
            model=self.text_config.model,
            contents=script_prompt(title, protagonist_name, script_type),
            config=self._json_config(Script),
        )
        try:
            return Script.model_validate_json(_response_text(response))
        except ValidationError as e:
            msg = f"Invalid script response: {e}"
            raise MalformedResponseError(msg) from e

    @_log_failures("Extract scenes")
    async def extract_scenes(
        self,
        script: str,
        protagonist_desc: str,
        script_type: ScriptType = ScriptType.SHORTS,
    ) -> list[Scene]:
        """Split ``script`` into storyboard scenes, sorted by id."""
        client = self._client()
        response = await self._generate(
            client,
            model=self.text_config.model,
            contents=storyboard_prompt(script, protagonist_desc, script_type),
            config=self._json_config(list[SceneDraft]),
        )
        try:
            scenes = _SCENES.validate_json(_response_text(response))
        except ValidationError as e:
            msg = f"Invalid storyboard response: {e}"
            raise MalformedResponseError(msg) from e
        return sorted(scenes, key=lambda s: s.id)

    @_log_failures("Generate image")
    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str | None = None,
        protagonist_desc: str = "",
        reference_image: str | None = None,
    ) -> str:
        """Draw a scene and return it as a ``data:image/png;base64`` URI.

        The detailed chibi style is tried first; if the model returns no
        image, one more attempt is made with a simplified style.

        Raises:
            NoImageResultError: If neither style produced an image.

        """
        client = self._client()
        reference = _reference_part(reference_image)
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(
                aspect_ratio=aspect_ratio or self.image_config.aspect_ratio,
            ),
        )

        for style in (PRIMARY_IMAGE_STYLE, FALLBACK_IMAGE_STYLE):
            parts = [reference] if reference else []
            parts.append(
                types.Part.from_text(text=image_prompt(style, prompt, protagonist_desc)),
            )
            response = await self._generate(
                client,
                model=self.image_config.model,
                contents=[types.Content(parts=parts)],
                config=config,
            )
            data = _inline_data(response)
            if data:
                return f"data:image/png;base64,{data}"
            logger.warning("No image returned for style %r", style[:40])

        raise NoImageResultError()

    @_log_failures("Generate speech")
    async def generate_speech(self, text: str, voice_name: str | None = None) -> bytes:
        """Narrate ``text`` and return WAV bytes.

        Blank text returns ``b""`` without calling the API.

        Raises:
            NoAudioResultError: If the response carried no audio payload.

        """
        if not text or not text.strip():
            return b""

        client = self._client()
        response = await self._generate(
            client,
            model=self.speech_config.model,
            contents=[types.Content(parts=[types.Part.from_text(text=text)])],
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(
                            voice_name=voice_name or self.speech_config.voice_name,
                        ),
                    ),
                ),
            ),
        )
        data = _inline_data(response)
        if not data:
            raise NoAudioResultError()
        return pcm_to_wav(data, self.speech_config.sample_rate)
