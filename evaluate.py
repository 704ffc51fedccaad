"""
Run the evaluation harness against `data/test_set.json` and print a summary.

    python evaluate.py --model 1 --output reports/latest.json
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from research_agents import (
    ConfigurationError,
    EvaluationResult,
    Evaluator,
    JudgeAgent,
    ResearchAgent,
    UnknownModelError,
)
from research_agents.evaluator import DEFAULT_DATASET_PATH, EvaluationReport, truncate

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Score the research agent against a fixed test set.")
    parser.add_argument("--model", type=int, help="1-based index into the available models (default: first)")
    parser.add_argument("--dataset", type=Path, default=DEFAULT_DATASET_PATH, help="path to the test set JSON")
    parser.add_argument("--output", type=Path, help="write the full report as JSON to this path")
    parser.add_argument("--pause", type=float, default=2.0, help="seconds to wait between test cases")
    return parser.parse_args(argv)


def print_result(index: int, result: EvaluationResult) -> None:
    status = "OK" if result.success else "ERR"
    print(f"\n[{index + 1}] {result.id}: {status}  score {result.score}/10")
    if result.success:
        print(f"    Response (preview): {result.answer_preview}")
    print(f"    {truncate(result.reasoning, 300)}")


def print_summary(report: EvaluationReport) -> None:
    print("\n" + "=" * 60)
    print("EVALUATION SUMMARY")
    print("=" * 60)
    print(f"{'Test ID':<20} {'Score':>6}  Status")
    for result in report.results:
        status = "OK" if result.success else "ERR"
        print(f"{result.id:<20} {result.score:>6.1f}  {status}")

    summary = report.summary
    print(f"\nTOTAL AVERAGE: {summary.average_score:.2f}/10")
    print(f"Pass rate (score >= {summary.pass_threshold:g}): {summary.pass_rate * 100:.0f}%")
    print(f"Successful tests: {summary.successful}/{summary.total}")
    print(f"Model used: {report.model_name}\n")


def main(argv=None) -> int:
    args = parse_args(argv)
    load_dotenv()

    try:
        research_agent = ResearchAgent.from_env()
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1

    registry = research_agent.registry
    try:
        model = registry.select(args.model) if args.model else registry.default_model()
    except UnknownModelError as exc:
        logger.error("%s", exc)
        return 2
    print(f"\nUsing model: {model.display_name}\n")

    evaluator = Evaluator(
        research_agent,
        JudgeAgent(registry),
        model=model.model_name,
        dataset_path=args.dataset,
        pause_seconds=args.pause,
        on_result=print_result,
    )
    report = evaluator.run()
    print_summary(report)
    if args.output:
        report.write_json(args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
