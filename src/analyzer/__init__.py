"""
SEO Gap Analyzer - LLM Analysis

Claude client plus the prompts for the analytical tasks:
- Keyword discovery
- Competitor naming and common topics
- Gap identification
- Content outline
- Executive summary
"""

from .client import ClaudeClient, ClaudeError, AnalysisResponse, TokenUsage

__all__ = [
    "ClaudeClient",
    "ClaudeError",
    "AnalysisResponse",
    "TokenUsage",
]
