"""FREM Core - Financial allocation and projection engine."""

__version__ = "0.1.0"

from .accounts import AccountSummarizer
from .allocator import OneTimeIncomeAllocator, summarize_one_time_incomes
from .breakdown import GoalBreakdownResolver
from .config import EngineSettings, configure_logging
from .daily_target import DailyTargetCalculator
from .engine import FinancialEngine
from .exceptions import (
    AlreadyAppliedError,
    ConfigurationError,
    DependencyFailure,
    FremError,
    NotFoundError,
    ValidationError,
)
from .expenses import ExpenseAggregator
from .goals import GoalProjectionEngine
from .income import IncomeAggregator
from .store import FinancialDataStore, InMemoryFinancialDataStore

__all__ = [
    "AccountSummarizer",
    "DailyTargetCalculator",
    "ExpenseAggregator",
    "GoalBreakdownResolver",
    "GoalProjectionEngine",
    "IncomeAggregator",
    "OneTimeIncomeAllocator",
    "summarize_one_time_incomes",
    "FinancialEngine",
    "FinancialDataStore",
    "InMemoryFinancialDataStore",
    "EngineSettings",
    "configure_logging",
    "FremError",
    "ValidationError",
    "NotFoundError",
    "AlreadyAppliedError",
    "DependencyFailure",
    "ConfigurationError",
]
