"""
agentcore
Tool-augmented agent turns and multi-agent workflow orchestration.
"""
__version__ = "0.1.0"
