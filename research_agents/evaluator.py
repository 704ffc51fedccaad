"""
Evaluation harness: replays a fixed question set through the research agent
and scores every answer with the judge agent.

Cases run strictly one after another with a pause in between so the upstream
providers are not hammered.  A failing case is recorded and the run moves on.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .judge_agent import JudgeAgent
from .research_agent import ResearchAgent
from .schemas import TestCase

logger = logging.getLogger(__name__)

DEFAULT_DATASET_PATH = Path("data") / "test_set.json"
PASS_THRESHOLD = 6.0
PREVIEW_LENGTH = 150


class EvaluationState(str, Enum):
    IDLE = "idle"
    LOADING_CASES = "loading_cases"
    RUNNING = "running"
    JUDGING = "judging"
    RECORDED = "recorded"
    AGGREGATING = "aggregating"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    id: str
    question: str
    answer_preview: str
    score: float
    reasoning: str
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "question": self.question,
            "answerPreview": self.answer_preview,
            "score": self.score,
            "reasoning": self.reasoning,
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True, slots=True)
class EvaluationSummary:
    total: int
    successful: int
    passed: int
    average_score: float
    pass_rate: float
    pass_threshold: float = PASS_THRESHOLD


@dataclass(frozen=True, slots=True)
class EvaluationReport:
    model_name: str
    results: List[EvaluationResult]
    summary: EvaluationSummary

    def write_json(self, path: Path) -> None:
        payload = {
            "model": self.model_name,
            "summary": asdict(self.summary),
            "results": [result.to_dict() for result in self.results],
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Wrote evaluation report to %s", path)


def load_test_cases(path: Path = DEFAULT_DATASET_PATH) -> List[TestCase]:
    """Load the ordered test set from a JSON array."""

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Test set at {path} must be a JSON array.")

    cases: List[TestCase] = []
    for index, record in enumerate(raw):
        try:
            cases.append(TestCase.model_validate(record))
        except ValidationError as exc:
            raise ValueError(f"Invalid test case at index {index} in {path}: {exc}") from exc
    logger.info("Loaded %d test case(s) from %s", len(cases), path)
    return cases


def truncate(text: str, max_length: int = PREVIEW_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def summarize(results: Sequence[EvaluationResult], pass_threshold: float = PASS_THRESHOLD) -> EvaluationSummary:
    """Mean over successful cases; pass rate over every case, failed ones included."""

    successful = [result for result in results if result.success]
    passed = [result for result in successful if result.score >= pass_threshold]
    average = sum(result.score for result in successful) / len(successful) if successful else 0.0
    pass_rate = len(passed) / len(results) if results else 0.0
    return EvaluationSummary(
        total=len(results),
        successful=len(successful),
        passed=len(passed),
        average_score=average,
        pass_rate=pass_rate,
        pass_threshold=pass_threshold,
    )


class Evaluator:
    """Drives the research agent over a test set and aggregates judge scores."""

    def __init__(
        self,
        research_agent: ResearchAgent,
        judge_agent: JudgeAgent,
        *,
        model: Optional[str] = None,
        dataset_path: Path = DEFAULT_DATASET_PATH,
        test_cases: Optional[Sequence[TestCase]] = None,
        pause_seconds: float = 2.0,
        pass_threshold: float = PASS_THRESHOLD,
        on_result: Optional[Callable[[int, EvaluationResult], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._research_agent = research_agent
        self._judge_agent = judge_agent
        self._model = model
        self._dataset_path = Path(dataset_path)
        self._preloaded_cases = list(test_cases) if test_cases is not None else None
        self._pause_seconds = max(0.0, pause_seconds)
        self._pass_threshold = pass_threshold
        self._on_result = on_result
        self._sleep = sleep
        self._state = EvaluationState.IDLE
        self._results: List[EvaluationResult] = []

    @property
    def state(self) -> EvaluationState:
        return self._state

    @property
    def results(self) -> List[EvaluationResult]:
        return list(self._results)

    def run(self) -> EvaluationReport:
        return asyncio.run(self.arun())

    async def arun(self) -> EvaluationReport:
        self._results = []
        self._set_state(EvaluationState.LOADING_CASES)
        if self._preloaded_cases is not None:
            cases = list(self._preloaded_cases)
        else:
            cases = load_test_cases(self._dataset_path)
        model_name = self._research_agent.registry.resolve(self._model).model_name

        for index, case in enumerate(cases):
            logger.info("TEST %d/%d: %s", index + 1, len(cases), case.id)
            result = await self._evaluate_case(case, model_name)
            self._results.append(result)
            self._set_state(EvaluationState.RECORDED)
            if self._on_result is not None:
                self._on_result(index, result)

            if index < len(cases) - 1 and self._pause_seconds:
                await self._sleep(self._pause_seconds)

        self._set_state(EvaluationState.AGGREGATING)
        summary = summarize(self._results, self._pass_threshold)
        logger.info(
            "Evaluation finished: average %.2f/10, pass rate %.0f%%, %d/%d successful.",
            summary.average_score,
            summary.pass_rate * 100,
            summary.successful,
            summary.total,
        )
        self._set_state(EvaluationState.DONE)
        return EvaluationReport(model_name=model_name, results=list(self._results), summary=summary)

    async def _evaluate_case(self, case: TestCase, model_name: str) -> EvaluationResult:
        try:
            self._set_state(EvaluationState.RUNNING)
            answer = await self._research_agent.arun(case.question, model=model_name)

            self._set_state(EvaluationState.JUDGING)
            verdict = await self._judge_agent.ajudge(
                case.question,
                answer.answer,
                case.expected_facts,
                model=model_name,
            )
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.error("Test case '%s' failed: %s", case.id, message)
            return EvaluationResult(
                id=case.id,
                question=case.question,
                answer_preview="N/A",
                score=0,
                reasoning=f"Error: {message}",
                success=False,
                error=message,
            )

        logger.info("Test case '%s' scored %s/10", case.id, verdict.score)
        return EvaluationResult(
            id=case.id,
            question=case.question,
            answer_preview=truncate(answer.answer),
            score=verdict.score,
            reasoning=verdict.reasoning,
            success=True,
        )

    def _set_state(self, state: EvaluationState) -> None:
        logger.debug("Evaluator state %s -> %s", self._state.value, state.value)
        self._state = state
