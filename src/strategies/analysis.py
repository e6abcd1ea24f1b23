"""Concrete analysis strategies, one per AnalysisType."""

from src.schemas.analysis import AnalysisType
from src.strategies.base import AnalysisStrategy


class ExplainAnalysisStrategy(AnalysisStrategy):
    """Describes what the code does and how it works."""

    analysis_type = AnalysisType.EXPLAIN
    description = "Explains what the code does, how it works, and the key concepts involved"


class RefactorAnalysisStrategy(AnalysisStrategy):
    analysis_type = AnalysisType.REFACTOR
    description = (
        "Suggests improvements for code quality, readability, performance, and maintainability"
    )


class DebugAnalysisStrategy(AnalysisStrategy):
    analysis_type = AnalysisType.DEBUG
    description = "Identifies potential bugs, issues, and provides debugging suggestions"


class WriteCodeAnalysisStrategy(AnalysisStrategy):
    """Generates code from requirements; the request's code field holds the requirements."""

    analysis_type = AnalysisType.WRITE_CODE
    description = (
        "Generates code based on user requirements, specifications, "
        "and programming language preferences"
    )


class FollowUpAnalysisStrategy(AnalysisStrategy):
    """Continues an ongoing conversation; the code field holds the question."""

    analysis_type = AnalysisType.FOLLOWUP
    description = (
        "Handles follow-up questions in an ongoing conversation with a conversational approach"
    )


class ComprehensiveAnalysisStrategy(AnalysisStrategy):
    analysis_type = AnalysisType.ANALYZE
    description = (
        "Provides comprehensive analysis including explanation, refactoring suggestions, "
        "and debugging insights"
    )


def default_strategies() -> list[AnalysisStrategy]:
    """One instance of every built-in strategy."""
    return [
        ExplainAnalysisStrategy(),
        RefactorAnalysisStrategy(),
        DebugAnalysisStrategy(),
        WriteCodeAnalysisStrategy(),
        FollowUpAnalysisStrategy(),
        ComprehensiveAnalysisStrategy(),
    ]


def build_strategy_map(
    strategies: list[AnalysisStrategy] | None = None,
) -> dict[AnalysisType, AnalysisStrategy]:
    """Index strategies by the analysis type they serve."""
    if strategies is None:
        strategies = default_strategies()
    return {strategy.analysis_type: strategy for strategy in strategies}
