# vibestream/llm_helper.py
# ---------------------------------------------------------------------------
# OpenAI helper: asks the model for (artist, track) candidates matching a vibe
# and pulls them out of whatever text comes back.
# ---------------------------------------------------------------------------

from __future__ import annotations

import json
import logging
import re
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from vibestream.errors import ConfigError, GenerationError, ParseError
from vibestream.schemas import SongCandidate

log = logging.getLogger("vibestream.llm")

CANDIDATE_COUNT = 10

# first "[" through last "]"; the model may wrap the array in prose
_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


def build_prompt(vibe: str, count: int = CANDIDATE_COUNT) -> str:
    return (
        f'Generate a playlist of {count} songs that match this vibe: "{vibe}".\n'
        'Return ONLY a JSON array with objects containing "artist" and "track" fields, '
        "with no text before or after it.\n"
        'Example format: [{"artist": "Artist Name", "track": "Song Title"}]'
    )


def extract_candidates(text: str) -> List[SongCandidate]:
    """
    Pull the song list out of a free-text model response.

    Raises ParseError when there is no array-shaped substring or when that
    substring is not valid JSON. Entries that are not ``{artist, track}``
    objects are dropped; the count is not enforced.
    """
    match = _ARRAY_RE.search(text or "")
    if not match:
        raise ParseError("Failed to parse playlist from AI response: no JSON array")
    try:
        raw = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ParseError("Failed to parse playlist from AI response: invalid JSON") from e

    candidates: List[SongCandidate] = []
    for item in raw:
        try:
            candidates.append(SongCandidate.model_validate(item))
        except ValidationError:
            log.warning("dropping malformed candidate: %r", item)
    return candidates


class TextGenerationClient:
    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        model: str = "gpt-4o-mini",
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ):
        self._client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def generate_candidates(self, vibe: str) -> List[SongCandidate]:
        if self._client is None:
            raise ConfigError("OPENAI_API_KEY is not set")
        try:
            res = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You are a music curator. You answer with JSON only."},
                    {"role": "user", "content": build_prompt(vibe)},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            log.error("OpenAI request failed: %s", e)
            raise GenerationError("Text generation request failed") from e

        text = (res.choices[0].message.content or "").strip() if res.choices else ""
        candidates = extract_candidates(text)
        log.info("model proposed %d candidates for vibe %r", len(candidates), vibe)
        return candidates
