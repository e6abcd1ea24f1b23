"""Analysis Strategies.

Prompt-building policies keyed by the requested operation (explain,
refactor, debug, write code, follow-up, comprehensive analysis).
"""

from src.strategies.analysis import (
    ComprehensiveAnalysisStrategy,
    DebugAnalysisStrategy,
    ExplainAnalysisStrategy,
    FollowUpAnalysisStrategy,
    RefactorAnalysisStrategy,
    WriteCodeAnalysisStrategy,
    build_strategy_map,
    default_strategies,
)
from src.strategies.base import AnalysisStrategy, AnalysisStrategyProtocol
from src.strategies.messages import MessagePair, SystemMessage, UserMessage


__all__ = [
    "AnalysisStrategy",
    "AnalysisStrategyProtocol",
    "ComprehensiveAnalysisStrategy",
    "DebugAnalysisStrategy",
    "ExplainAnalysisStrategy",
    "FollowUpAnalysisStrategy",
    "MessagePair",
    "RefactorAnalysisStrategy",
    "SystemMessage",
    "UserMessage",
    "WriteCodeAnalysisStrategy",
    "build_strategy_map",
    "default_strategies",
]
