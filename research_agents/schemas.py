"""Structured shapes exchanged with the generation backend and the evaluator."""

from __future__ import annotations

import logging
import re
from typing import ClassVar, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


class SearchResult(BaseModel):
    title: str = ""
    url: str = ""
    content: str = ""


class SearchResponse(BaseModel):
    results: List[SearchResult] = Field(default_factory=list)


class Source(BaseModel):
    title: str = Field(description="The title of the source")
    url: str = Field(description="The URL of the source")


class StructuredAnswer(BaseModel):
    """Answer returned by the research flow."""

    answer: str = Field(description="The complete answer in Markdown format")
    sources: List[Source] = Field(default_factory=list, description="List of sources used in the answer")


class JudgeVerdict(BaseModel):
    score: float
    reasoning: str


class TestCase(BaseModel):
    model_config = ConfigDict(frozen=True)

    # keep pytest from collecting this model
    __test__: ClassVar[bool] = False

    id: str
    question: str
    expected_facts: List[str] = Field(default_factory=list)


def parse_model_output(text: Optional[str], model_cls: Type[ModelT]) -> Optional[ModelT]:
    """
    Parse a backend reply into `model_cls`.

    Accepts bare JSON, JSON wrapped in a Markdown code fence, or a JSON object
    embedded in surrounding prose.  Returns None when nothing validates.
    """

    if not text or not text.strip():
        return None

    for candidate in _json_candidates(text):
        try:
            return model_cls.model_validate_json(candidate)
        except ValidationError:
            continue
    logger.debug("Backend output did not validate as %s.", model_cls.__name__)
    return None


def _json_candidates(text: str) -> List[str]:
    candidates = [text.strip()]
    candidates.extend(match.strip() for match in _FENCE_PATTERN.findall(text))
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])
    unique: List[str] = []
    for candidate in candidates:
        if candidate and candidate not in unique:
            unique.append(candidate)
    return unique
