"""
Publish Module
==============

- orchestrator: RecipePublisher state machine and saga
- registry: handler descriptors and the AI tool definition
- trace_logger: JSONL audit trail of publishes
"""

from .orchestrator import PublishSaga, RecipePublisher, load_handler_config
from .registry import (
    HandlerDescriptor,
    HandlerRegistry,
    default_registry,
    recipe_publish_tool,
)
from .trace_logger import PublishTraceLogger, get_trace_logger, set_trace_logger

__all__ = [
    "PublishSaga",
    "RecipePublisher",
    "load_handler_config",
    "HandlerDescriptor",
    "HandlerRegistry",
    "default_registry",
    "recipe_publish_tool",
    "PublishTraceLogger",
    "get_trace_logger",
    "set_trace_logger",
]
