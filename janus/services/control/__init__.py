"""
Control Service - command consumption and execution

- dispatcher.py - Polls the command key (claim-by-delete)
- executor.py - Runs recipes as child processes
- recipes.py - (command, OS) -> process invocations
"""

from .dispatcher import Dispatcher
from .executor import Executor, ExecutionResult, StepResult
from .recipes import ProcessInvocation, RecipeTable

__all__ = [
    "Dispatcher",
    "Executor",
    "ExecutionResult",
    "StepResult",
    "ProcessInvocation",
    "RecipeTable",
]
