"""
Claude API Client for SEO Analysis

Provides a robust client for interacting with Claude API,
including token management, retry logic, schema-constrained JSON output
and cost tracking.
"""

import os
import asyncio
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass

import anthropic

from src.utils.safe_json import safe_parse

logger = logging.getLogger(__name__)


class ClaudeError(Exception):
    """Raised when a JSON analysis task cannot get a response from Claude."""


@dataclass
class TokenUsage:
    """Track token usage for cost calculation."""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def estimated_cost(self) -> float:
        """Estimate cost based on Claude Sonnet 4 pricing."""
        # Sonnet 4 pricing: $3/1M input, $15/1M output
        input_cost = (self.input_tokens / 1_000_000) * 3.0
        output_cost = (self.output_tokens / 1_000_000) * 15.0
        return input_cost + output_cost


@dataclass
class AnalysisResponse:
    """Response from Claude analysis."""
    content: str
    usage: TokenUsage
    model: str
    stop_reason: str
    success: bool = True
    error: Optional[str] = None
    tool_input: Optional[Dict[str, Any]] = None


class ClaudeClient:
    """
    Async client for Claude API used by the analysis pipeline.

    Features:
    - Token usage tracking
    - Retry with exponential backoff
    - Structured output through a forced tool call
    - Cost tracking per analysis
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    MAX_TOKENS = 4000
    TEMPERATURE = 0.3

    # Tool name used for schema-constrained responses
    STRUCTURED_TOOL_NAME = "submit_result"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
    ):
        """
        Initialize Claude client.

        Args:
            api_key: Anthropic API key (defaults to env var)
            model: Model to use (defaults to Sonnet 4)
        """
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY not provided")

        self.model = model or self.DEFAULT_MODEL
        self.async_client = anthropic.AsyncAnthropic(api_key=self.api_key)

        # Track cumulative usage
        self.total_usage = TokenUsage()
        self.call_count = 0

    async def analyze(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = MAX_TOKENS,
        temperature: float = TEMPERATURE,
        tools: Optional[List[Dict]] = None,
        tool_choice: Optional[Dict[str, Any]] = None,
    ) -> AnalysisResponse:
        """
        Send analysis prompt to Claude.

        Args:
            prompt: User prompt
            system: System prompt
            max_tokens: Maximum output tokens
            temperature: Sampling temperature
            tools: Optional tool definitions
            tool_choice: Optional tool choice (forces a specific tool)

        Returns:
            AnalysisResponse with content and usage
        """
        try:
            messages = [{"role": "user", "content": prompt}]

            kwargs = {
                "model": self.model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "messages": messages,
            }

            if system:
                kwargs["system"] = system

            if tools:
                kwargs["tools"] = tools

            if tool_choice:
                kwargs["tool_choice"] = tool_choice

            # Make API call
            response = await self.async_client.messages.create(**kwargs)

            # Extract content
            content = ""
            tool_input = None
            for block in response.content:
                if getattr(block, "type", None) == "tool_use":
                    tool_input = block.input
                elif hasattr(block, "text"):
                    content += block.text

            # Track usage
            usage = TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )
            self.total_usage.input_tokens += usage.input_tokens
            self.total_usage.output_tokens += usage.output_tokens
            self.call_count += 1

            logger.info(
                f"Claude call: {usage.input_tokens} in, {usage.output_tokens} out, "
                f"${usage.estimated_cost:.4f}"
            )

            return AnalysisResponse(
                content=content,
                usage=usage,
                model=self.model,
                stop_reason=response.stop_reason,
                tool_input=tool_input,
            )

        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            return AnalysisResponse(
                content="",
                usage=TokenUsage(),
                model=self.model,
                stop_reason="error",
                success=False,
                error=str(e),
            )

    async def analyze_with_retry(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_retries: int = 3,
        **kwargs,
    ) -> AnalysisResponse:
        """
        Analyze with retry logic for transient failures.

        Args:
            prompt: User prompt
            system: System prompt
            max_retries: Maximum retry attempts
            **kwargs: Additional arguments for analyze()

        Returns:
            AnalysisResponse
        """
        last_error = None

        for attempt in range(max_retries):
            response = await self.analyze(prompt, system, **kwargs)

            if response.success:
                return response

            last_error = response.error
            if attempt < max_retries - 1:
                wait_time = 2 ** attempt  # Exponential backoff
                logger.warning(
                    f"Claude call failed (attempt {attempt + 1}/{max_retries}), "
                    f"retrying in {wait_time}s: {response.error}"
                )
                await asyncio.sleep(wait_time)

        return AnalysisResponse(
            content="",
            usage=TokenUsage(),
            model=self.model,
            stop_reason="max_retries",
            success=False,
            error=f"Max retries exceeded. Last error: {last_error}",
        )

    async def analyze_json(
        self,
        prompt: str,
        system: Optional[str] = None,
        schema: Optional[Dict[str, Any]] = None,
        fallback: Any = None,
        **kwargs,
    ) -> Any:
        """
        Run an analysis task that must return JSON.

        With a schema, Claude is forced to answer through a tool whose
        input_schema is that schema, so the result is already structured.
        Without one (or if the tool call is missing), the text answer is
        parsed leniently.

        Args:
            prompt: User prompt
            system: System prompt
            schema: JSON schema of the expected object
            fallback: Returned when the answer cannot be parsed
            **kwargs: Additional arguments for analyze()

        Raises:
            ClaudeError: When Claude could not be reached after retries

        Returns:
            Parsed JSON or the fallback
        """
        if schema:
            kwargs["tools"] = [{
                "name": self.STRUCTURED_TOOL_NAME,
                "description": "Submit the result of the analysis.",
                "input_schema": schema,
            }]
            kwargs["tool_choice"] = {"type": "tool", "name": self.STRUCTURED_TOOL_NAME}

        response = await self.analyze_with_retry(prompt, system, **kwargs)
        if not response.success:
            raise ClaudeError(f"Claude analysis failed: {response.error}")

        if response.tool_input is not None:
            return response.tool_input

        return safe_parse(response.content, fallback)

    def get_total_cost(self) -> float:
        """Get total cost for all calls in this session."""
        return self.total_usage.estimated_cost

    def get_usage_summary(self) -> Dict[str, Any]:
        """Get summary of all API usage."""
        return {
            "total_calls": self.call_count,
            "input_tokens": self.total_usage.input_tokens,
            "output_tokens": self.total_usage.output_tokens,
            "total_tokens": self.total_usage.total_tokens,
            "estimated_cost": self.total_usage.estimated_cost,
        }
