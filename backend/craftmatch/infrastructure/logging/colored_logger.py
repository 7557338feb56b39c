"""Colored pipeline logger — ANSI-colored console logging for the matching pipeline.

Each orchestrator stage gets its own colour so a single match request can be
followed through the terminal:

    🔵 Blue    — Normalize / Classify
    🟣 Magenta — AI fallback
    🟡 Yellow  — Cache
    🟢 Green   — Retrieve / Complete
    🟠 Cyan    — Score / Analytics
    🔴 Red     — Errors
"""

import logging
import time
from contextlib import contextmanager
from typing import Any

PIPELINE_LOGGER_PREFIX = "craftmatch.pipeline"


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


# ── Pipeline Stage Definitions ───────────────────────────────────────

class PipelineStage:
    """Matching pipeline stages as (label, colour, icon)."""

    NORMALIZE = ("NORMALIZE", _Colors.BLUE, "✂️")
    CACHE = ("CACHE", _Colors.YELLOW, "💾")
    CLASSIFY = ("CLASSIFY", _Colors.BLUE, "🏷️")
    AI_FALLBACK = ("AI_FALLBACK", _Colors.MAGENTA, "🤖")
    RETRIEVE = ("RETRIEVE", _Colors.GREEN, "🔎")
    SCORE = ("SCORE", _Colors.CYAN, "📊")
    ANALYTICS = ("ANALYTICS", _Colors.CYAN, "📈")
    PIPELINE = ("PIPELINE", _Colors.WHITE, "⚙️")
    ERROR = ("ERROR", _Colors.RED, "❌")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")


def _format_details(kwargs: dict[str, Any], colour: str) -> str:
    details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
    return f" {colour}({details}){_Colors.RESET}"


# ── PipelineLogger ───────────────────────────────────────────────────

class PipelineLogger:
    """Color-coded logger for one pipeline component.

    Usage:
        log = PipelineLogger("MatchingOrchestrator")
        log.step_start(PipelineStage.RETRIEVE, "Exact retrieval", profession="pottery")
        log.detail("3 candidates")
        log.step_complete(PipelineStage.RETRIEVE, "Retrieved candidates")

    Log records go to ``craftmatch.pipeline.<component>`` so the whole
    pipeline can be silenced with one logger level.
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(f"{PIPELINE_LOGGER_PREFIX}.{component_name}")
        self._component = component_name

    def step_start(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += _format_details(kwargs, _Colors.GRAY)
        self._logger.info(formatted)

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += _format_details(kwargs, _Colors.GRAY)
        self._logger.info(formatted)

    def step_warning(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log a degraded-but-recovered step (yellow, WARNING level)."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.YELLOW}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.YELLOW}⚠ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += _format_details(kwargs, _Colors.GRAY)
        self._logger.warning(formatted)

    def step_error(self, stage: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        label, _, _ = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        if kwargs:
            formatted += _format_details(kwargs, _Colors.DIM)
        self._logger.info(formatted)

    def stats(self, **kwargs: Any) -> None:
        parts = [f"{_Colors.GRAY}{k}: {v}" for k, v in kwargs.items()]
        self._logger.info(f"   {_Colors.GRAY}📈 {' | '.join(parts)}{_Colors.RESET}")

    @contextmanager
    def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with log.timed_step(PipelineStage.SCORE, "Scoring candidates"):
                results = engine.score(candidates, match)
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} failed after {elapsed * 1000:.1f}ms", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} ({elapsed * 1000:.1f}ms)")
