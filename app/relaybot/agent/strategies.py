"""Generation strategies -- one per backend the bot can relay to.

The dispatcher only sees :class:`GenerationStrategy`; which concrete
strategy runs is chosen once at startup from ``GENERATION_MODE``.
"""

from __future__ import annotations

import base64
import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from ..config.settings import Settings
from ..errors import GenerationError, MissingInputError, NoImageProducedError
from ..media import ScratchStore, extension_for, fetch_bytes, image_mime
from ..messaging.formatting import clean_response
from ..state.history import HistoryEntry
from .prompt import DEFAULT_PERSONA, Persona, build_system_prompt

logger = logging.getLogger(__name__)

MAX_SEED = 2**31 - 1


class AttachmentLike(Protocol):
    filename: str
    url: str

    @property
    def content_type(self) -> str | None: ...

    async def save(self, fp: Path) -> int: ...


@dataclass
class GenerationRequest:
    prompt: str
    username: str
    user_id: str
    conversation_id: str
    persona: Persona = DEFAULT_PERSONA
    history: list[HistoryEntry] = field(default_factory=list)
    attachments: Sequence[AttachmentLike] = ()


@dataclass
class GenerationReply:
    text: str = ""
    image: bytes | None = None
    image_suffix: str = ".png"


class GenerationStrategy(ABC):
    """Turns a :class:`GenerationRequest` into a :class:`GenerationReply`."""

    mode: str = ""

    def validate(self, request: GenerationRequest) -> None:
        """Raise :class:`MissingInputError` if *request* cannot be served."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationReply: ...

    async def close(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Text completion
# ---------------------------------------------------------------------------


class TextCompletionStrategy(GenerationStrategy):
    """Chat completion against an OpenAI-compatible endpoint."""

    mode = "text"

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    def build_messages(self, request: GenerationRequest) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": build_system_prompt(request.persona)}]
        for entry in request.history:
            if entry.from_bot:
                messages.append({"role": "assistant", "content": entry.content})
            else:
                messages.append({"role": "user", "content": f"{entry.author_label}: {entry.content}"})
        messages.append({"role": "user", "content": request.prompt})
        return messages

    async def generate(self, request: GenerationRequest) -> GenerationReply:
        messages = self.build_messages(request)
        logger.info(
            "[text] model=%s history=%d prompt_len=%d",
            self._model, len(request.history), len(request.prompt),
        )
        completion = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            stream=False,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        if not completion.choices:
            raise GenerationError("Completion returned no choices")
        raw = completion.choices[0].message.content
        return GenerationReply(text=clean_response(raw) or request.persona.fallback)

    async def close(self) -> None:
        await self._client.close()


# ---------------------------------------------------------------------------
# Image generation
# ---------------------------------------------------------------------------


class ImageGenerationStrategy(GenerationStrategy):
    """Text-to-image through an OpenAI-compatible images endpoint."""

    mode = "image"

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        *,
        width: int = 1024,
        height: int = 768,
        steps: int = 4,
        seed: int | None = None,
        output_format: str = "png",
    ) -> None:
        self._client = client
        self._model = model
        self._width = width
        self._height = height
        self._steps = steps
        self._seed = seed
        self._format = output_format

    def validate(self, request: GenerationRequest) -> None:
        if not request.prompt:
            raise MissingInputError(request.persona.guidance("need_prompt"))

    async def generate(self, request: GenerationRequest) -> GenerationReply:
        seed = self._seed if self._seed is not None else random.randint(0, MAX_SEED)
        logger.info(
            "[image] model=%s size=%dx%d steps=%d seed=%d",
            self._model, self._width, self._height, self._steps, seed,
        )
        result = await self._client.images.generate(
            model=self._model,
            prompt=request.prompt,
            n=1,
            response_format="b64_json",
            extra_body={
                "width": self._width,
                "height": self._height,
                "steps": self._steps,
                "seed": seed,
                "output_format": self._format,
            },
        )
        if not result.data:
            raise NoImageProducedError("Image endpoint returned no data")
        item = result.data[0]
        if item.b64_json:
            image = base64.b64decode(item.b64_json)
        elif item.url:
            image = await fetch_bytes(item.url)
        else:
            raise NoImageProducedError("Image endpoint returned neither base64 nor URL")
        return GenerationReply(
            text=request.persona.guidance("image_ready"),
            image=image,
            image_suffix=f".{self._format}",
        )

    async def close(self) -> None:
        await self._client.close()


# ---------------------------------------------------------------------------
# Image edit
# ---------------------------------------------------------------------------


def first_image(attachments: Sequence[AttachmentLike]) -> tuple[AttachmentLike, str] | None:
    """Return the first image attachment and its MIME type."""
    for att in attachments:
        mime = image_mime(att.content_type, att.filename)
        if mime:
            return att, mime
    return None


class ImageEditStrategy(GenerationStrategy):
    """Edits an attached image with a Gemini multimodal model.

    The attachment is downloaded to scratch storage, uploaded through the
    Files API and referenced from a chat turn carrying the edit instruction.
    """

    mode = "edit"

    def __init__(
        self,
        client: genai.Client,
        model: str,
        scratch: ScratchStore,
    ) -> None:
        self._client = client
        self._model = model
        self._scratch = scratch

    def validate(self, request: GenerationRequest) -> None:
        if first_image(request.attachments) is None:
            raise MissingInputError(request.persona.guidance("need_image"))
        if not request.prompt:
            raise MissingInputError(request.persona.guidance("need_instructions"))

    async def generate(self, request: GenerationRequest) -> GenerationReply:
        found = first_image(request.attachments)
        if found is None:
            raise MissingInputError(request.persona.guidance("need_image"))
        attachment, mime = found

        async with self._scratch.reserve(request.user_id, "original", extension_for(mime)) as original:
            await attachment.save(original)
            logger.info("[edit] downloaded %s (%s) to %s", attachment.filename, mime, original.name)

            uploaded = await self._client.aio.files.upload(
                file=original,
                config=types.UploadFileConfig(mime_type=mime),
            )
            logger.info("[edit] uploaded as %s", uploaded.name)

            chat = self._client.aio.chats.create(
                model=self._model,
                config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
            )
            response = await chat.send_message([
                types.Part.from_uri(file_uri=uploaded.uri, mime_type=uploaded.mime_type or mime),
                request.prompt,
            ])

        image, suffix, caption = await self._extract_image(response)
        return GenerationReply(
            text=clean_response(caption) or request.persona.guidance("image_ready"),
            image=image,
            image_suffix=suffix,
        )

    async def _extract_image(self, response: Any) -> tuple[bytes, str, str]:
        texts: list[str] = []
        image: bytes | None = None
        suffix = ".png"
        for candidate in response.candidates or []:
            parts = candidate.content.parts if candidate.content else None
            for part in parts or []:
                if part.text:
                    texts.append(part.text)
                if image is not None:
                    continue
                if part.file_data and part.file_data.file_uri:
                    image = await self._client.aio.files.download(file=part.file_data.file_uri)
                    suffix = extension_for(part.file_data.mime_type)
                elif part.inline_data and part.inline_data.data:
                    data = part.inline_data.data
                    image = base64.b64decode(data) if isinstance(data, str) else data
                    suffix = extension_for(part.inline_data.mime_type)
        if image is None:
            raise NoImageProducedError("Model response contained no image part")
        return image, suffix, "\n".join(texts)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_strategy(settings: Settings, scratch: ScratchStore | None = None) -> GenerationStrategy:
    """Create the strategy for ``settings.generation_mode``."""
    mode = settings.generation_mode
    if mode == "edit":
        if scratch is None:
            raise ValueError("Image edit mode needs a scratch store")
        return ImageEditStrategy(
            genai.Client(api_key=settings.gemini_api_key),
            settings.edit_model,
            scratch,
        )

    client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.base_url or None)
    if mode == "image":
        return ImageGenerationStrategy(
            client,
            settings.image_model,
            width=settings.image_width,
            height=settings.image_height,
            steps=settings.image_steps,
            seed=settings.image_seed,
            output_format=settings.image_format,
        )
    return TextCompletionStrategy(
        client,
        settings.text_model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
