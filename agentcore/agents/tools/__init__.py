"""
Agent Tools Package
"""
from .base import BaseTool, FunctionTool, ToolContext
from .semantic_search import SemanticSearchTool

__all__ = [
    "BaseTool",
    "FunctionTool",
    "ToolContext",
    "SemanticSearchTool",
]
