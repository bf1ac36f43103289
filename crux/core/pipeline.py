"""Generation pipeline - resume upload to validated portfolio HTML.

A small state machine: each stage has a precondition on the state, a
handler, and a successor. The run stops at the first failing stage.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Awaitable, Callable, Dict, Tuple
import logging

from ..errors import PipelineStateError
from ..models import AppConfig, PipelineStage, PortfolioState
from ..services import CompletionClient, TemplateLibrary
from .extraction import extract_text
from .profiler import extract_profile
from .renderer import render_portfolio
from .validator import validate_artifact

logger = logging.getLogger(__name__)


class Stage(Enum):
    IDLE = auto()
    EXTRACT = auto()
    STRUCTURE = auto()
    RENDER = auto()
    VALIDATE = auto()
    COMPLETE = auto()
    ERROR = auto()


@dataclass
class PipelineDeps:
    """Collaborators the stage handlers need."""
    config: AppConfig
    completion: CompletionClient
    templates: TemplateLibrary


StageHandler = Callable[[PortfolioState, PipelineDeps], Awaitable[PortfolioState]]


async def _extract(state: PortfolioState, deps: PipelineDeps) -> PortfolioState:
    text = await extract_text(state.document)
    return state.model_copy(update={"extracted_text": text})


async def _structure(state: PortfolioState, deps: PipelineDeps) -> PortfolioState:
    profile = await extract_profile(state.extracted_text, deps.completion)
    return state.model_copy(update={"profile": profile})


async def _render(state: PortfolioState, deps: PipelineDeps) -> PortfolioState:
    html = render_portfolio(state.profile, state.template, deps.templates, state.avatar)
    return state.model_copy(update={"html": html})


async def _validate(state: PortfolioState, deps: PipelineDeps) -> PortfolioState:
    validate_artifact(state.html, deps.config.pipeline.artifact_min_length)
    return state


class PortfolioOrchestrator:
    """Drives a PortfolioState through the generation stages.

    IDLE → EXTRACT → STRUCTURE → RENDER → VALIDATE → COMPLETE

    A failing stage moves the machine to ERROR, is recorded on
    ``pipeline_state`` and its error propagates unchanged.

    Usage:
        orchestrator = PortfolioOrchestrator(deps)
        final_state = await orchestrator.run(initial_state)
    """

    NEXT: Dict[Stage, Stage] = {
        Stage.IDLE: Stage.EXTRACT,
        Stage.EXTRACT: Stage.STRUCTURE,
        Stage.STRUCTURE: Stage.RENDER,
        Stage.RENDER: Stage.VALIDATE,
        Stage.VALIDATE: Stage.COMPLETE,
    }

    HANDLERS: Dict[Stage, StageHandler] = {
        Stage.EXTRACT: _extract,
        Stage.STRUCTURE: _structure,
        Stage.RENDER: _render,
        Stage.VALIDATE: _validate,
    }

    # state field that must be set before the stage runs
    REQUIRES: Dict[Stage, Tuple[str, str]] = {
        Stage.EXTRACT: ("document", "no uploaded document"),
        Stage.STRUCTURE: ("extracted_text", "no extracted text"),
        Stage.RENDER: ("profile", "no structured profile"),
    }

    def __init__(self, deps: PipelineDeps):
        self.deps = deps
        self._stage = Stage.IDLE
        self._progress = PipelineStage()

    @property
    def current_stage(self) -> Stage:
        return self._stage

    @property
    def pipeline_state(self) -> PipelineStage:
        return self._progress

    def _check_requirements(self, state: PortfolioState) -> None:
        requirement = self.REQUIRES.get(self._stage)
        if requirement is None:
            return
        field, problem = requirement
        if not getattr(state, field):
            raise PipelineStateError(f"Cannot run {self._stage.name}: {problem}")

    def _enter(self, stage: Stage) -> None:
        self._stage = stage
        self._progress.current = stage.name

    def _fail(self, error: Exception) -> None:
        failed = self._stage.name
        logger.error(f"{failed} failed: {error}")
        self._progress.errors.append(f"{failed}: {error}")
        self._enter(Stage.ERROR)

    async def _run_current(self, state: PortfolioState) -> PortfolioState:
        handler = self.HANDLERS.get(self._stage)
        if handler is None:
            return state

        logger.info(f"[{self._stage.name}] start")
        try:
            self._check_requirements(state)
            state = await handler(state, self.deps)
        except Exception as e:
            self._fail(e)
            raise

        self._progress.completed.append(self._stage.name)
        return state

    async def run(self, initial_state: PortfolioState) -> PortfolioState:
        """Run every stage in order.

        Returns:
            The final state, carrying the profile and validated html.

        Raises:
            PortfolioError: Whatever the first failing stage raised.
        """
        state = initial_state
        self._progress = PipelineStage()
        self._enter(Stage.IDLE)

        while self._stage in self.NEXT:
            self._enter(self.NEXT[self._stage])
            state = await self._run_current(state)

        logger.info(f"Portfolio generated ({len(state.html)} chars)")
        return state

    async def run_stage(self, stage: Stage, state: PortfolioState) -> PortfolioState:
        """Run one stage on ``state`` without advancing the machine."""
        self._enter(stage)
        return await self._run_current(state)
