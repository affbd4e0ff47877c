"""
Workflow Orchestrator
Composes agents into sequential, parallel and hierarchical workflows.

Each execution moves RUNNING -> COMPLETED | FAILED and always reaches a
terminal status. Every assignment moves PENDING -> ASSIGNED -> RUNNING ->
COMPLETED | FAILED and writes one TASK_STEP action record when it ends.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import asyncio
import logging

from .action_log import ActionLog
from .base import BaseAgent
from .parallel_executor import ParallelExecutor
from .planner import build_planning_prompt, compute_waves, parse_plan
from .registry import AgentRegistry
from .types import (
    ActionKind,
    ActionStatus,
    AgentAssignment,
    AssignmentStatus,
    PlanStep,
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowResult,
    WorkflowStrategy,
)
from ..core.config import AgentCoreSettings, get_settings
from ..core.errors import AgentCoreError, PersistenceError, WorkflowTimeoutError
from ..core.logging_framework import AppLogger, LogCategory, Stopwatch
from ..core.retry import retry_once
from ..repositories.workflow_repository import WorkflowRepository

logger = logging.getLogger(__name__)
app_logger = AppLogger(__name__)


DEFAULT_TASK_STEPS = [
    "Analyze task requirements",
    "Search for relevant information",
    "Synthesize results",
]

# Failure causes recorded on executions
CAUSE_AGENT_FAILED = "agent_failed"
CAUSE_SYNTHESIZER_FAILED = "synthesizer_failed"
CAUSE_SUPERVISOR_FAILED = "supervisor_failed"
CAUSE_TIMEOUT = "timeout"
CAUSE_INTERNAL = "internal_error"

FAILURE_MARKER = "[FAILED]"
TIMEOUT_ERROR = "timeout"


class _WorkflowFailure(Exception):
    """Internal signal: the strategy decided the execution fails"""

    def __init__(self, error: str, cause: str):
        super().__init__(error)
        self.error = error
        self.cause = cause


@dataclass
class _ExecutionState:
    execution: WorkflowExecution
    definition: WorkflowDefinition
    conversation_id: str
    assignments: List[AgentAssignment] = field(default_factory=list)


class WorkflowOrchestrator:
    """
    Runs workflow definitions against registered agents.

    Local failures (one branch, one worker) are recorded on their
    assignment; they fail the execution only per strategy:
    - sequential: any failed step (fail-fast)
    - parallel: only a failed synthesizer
    - hierarchical: only a failed supervisor call
    """

    def __init__(
        self,
        agent_registry: Optional[AgentRegistry] = None,
        action_log: Optional[ActionLog] = None,
        workflow_repository: Optional[WorkflowRepository] = None,
        parallel_executor: Optional[ParallelExecutor] = None,
        use_retrieval: bool = True,
        settings: Optional[AgentCoreSettings] = None
    ):
        if workflow_repository is None:
            from ..infrastructure.memory import MemoryWorkflowRepository
            workflow_repository = MemoryWorkflowRepository()
        self.agent_registry = agent_registry or AgentRegistry()
        self.action_log = action_log or ActionLog()
        self.workflow_repository = workflow_repository
        self.parallel_executor = parallel_executor or ParallelExecutor()
        self.use_retrieval = use_retrieval
        self.settings = settings or get_settings()

    def register_agent(self, agent: BaseAgent) -> None:
        """Make an agent available to workflow definitions"""
        self.agent_registry.register(agent)

    # ==================== Public API ====================

    async def execute(
        self,
        definition: WorkflowDefinition,
        task: str,
        conversation_id: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> WorkflowResult:
        """
        Execute a workflow.

        Args:
            definition: Validated workflow definition
            task: Root task text
            conversation_id: Root conversation; agents use
                ``{conversation_id}:{agent_id}``. Defaults to the execution id.
            timeout: Deadline in seconds; overrides the definition's and
                the configured default

        Returns:
            WorkflowResult with terminal status and every assignment
        """
        timer = Stopwatch()
        execution = WorkflowExecution(
            definition_name=definition.name,
            strategy=definition.strategy,
            task=task,
            conversation_id=conversation_id
        )
        if execution.conversation_id is None:
            execution.conversation_id = execution.execution_id
        state = _ExecutionState(execution, definition, execution.conversation_id)
        await self._save_execution(execution)

        deadline = next(
            (value for value in (timeout, definition.timeout, self.settings.WORKFLOW_TIMEOUT_SECONDS) if value is not None),
            None
        )
        app_logger.info(
            f"Workflow '{definition.name}' started",
            category=LogCategory.WORKFLOW,
            extra_data={
                "execution_id": execution.execution_id,
                "strategy": definition.strategy.value,
                "deadline": deadline
            }
        )

        try:
            if deadline is not None:
                final_result = await asyncio.wait_for(self._run_strategy(state, task), timeout=deadline)
            else:
                final_result = await self._run_strategy(state, task)
            execution.mark_completed(final_result)
        except _WorkflowFailure as e:
            execution.mark_failed(e.error, e.cause)
        except asyncio.TimeoutError:
            await self._expire(state)
            execution.mark_failed(WorkflowTimeoutError(deadline).message, CAUSE_TIMEOUT)
        except Exception as e:
            logger.exception(f"[WorkflowOrchestrator] Unexpected error in '{definition.name}'")
            await self._expire(state, error=f"Aborted: {e}")
            execution.mark_failed(f"Unexpected error: {e}", CAUSE_INTERNAL)

        await self._save_execution(execution)

        result = WorkflowResult.from_execution(execution, state.assignments, timer.elapsed)
        app_logger.info(
            f"Workflow '{definition.name}' {execution.status.value}",
            category=LogCategory.WORKFLOW,
            duration_ms=timer.elapsed_ms,
            extra_data={
                "execution_id": execution.execution_id,
                "assignments": len(state.assignments),
                "failure_cause": execution.failure_cause
            }
        )
        return result

    async def run_task(
        self,
        agent_id: str,
        task: str,
        steps: Optional[List[str]] = None,
        conversation_id: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> WorkflowResult:
        """
        Multi-step task execution for a single agent.

        Runs ``steps`` (default: analyze, search, synthesize) sequentially
        on the same agent, threading each step's output into the next.
        """
        definition = WorkflowDefinition.sequential(
            name=f"task:{agent_id}",
            steps=[(agent_id, step) for step in (steps or DEFAULT_TASK_STEPS)]
        )
        return await self.execute(definition, task, conversation_id=conversation_id, timeout=timeout)

    async def get_execution(self, execution_id: str) -> Optional[WorkflowExecution]:
        """Read back a persisted execution"""
        return await retry_once(
            lambda: self.workflow_repository.get_execution(execution_id),
            "get_execution"
        )

    async def list_assignments(self, execution_id: str) -> List[AgentAssignment]:
        """Read back an execution's assignments in creation order"""
        return await retry_once(
            lambda: self.workflow_repository.list_assignments(execution_id),
            "list_assignments"
        )

    # ==================== Strategies ====================

    async def _run_strategy(self, state: _ExecutionState, task: str) -> str:
        strategy = state.definition.strategy
        if strategy == WorkflowStrategy.SEQUENTIAL:
            return await self._run_sequential(state, task)
        if strategy == WorkflowStrategy.PARALLEL:
            return await self._run_parallel(state, task)
        return await self._run_hierarchical(state, task)

    async def _run_sequential(self, state: _ExecutionState, task: str) -> str:
        """Strictly ordered, fail-fast; each step sees the previous output"""
        previous_output: Optional[str] = None

        for position, step in enumerate(state.definition.steps):
            step_input = self._sequential_input(task, step.task, previous_output)
            assignment = await self._run_assignment(state, step.agent_id, step_input, position)

            if assignment.status == AssignmentStatus.FAILED:
                raise _WorkflowFailure(
                    f"Step {position + 1} ({step.agent_id}) failed: {assignment.error}",
                    CAUSE_AGENT_FAILED
                )
            previous_output = assignment.result or ""

        return previous_output or ""

    @staticmethod
    def _sequential_input(task: str, step_task: str, previous_output: Optional[str]) -> str:
        parts = [step_task] if step_task else []
        parts.append(f"Task: {task}")
        if previous_output is not None:
            parts.append(f"Previous result:\n{previous_output}")
        return "\n\n".join(parts)

    async def _run_parallel(self, state: _ExecutionState, task: str) -> str:
        """Best-effort fan-out, mandatory fan-in through the synthesizer"""
        branches = state.definition.branches
        pending = [
            self._new_assignment(state, branch.agent_id, f"{task}\n\nFocus: {branch.specialty}", position)
            for position, branch in enumerate(branches)
        ]
        for assignment in pending:
            await self._save_assignment(assignment)

        outcomes = await self.parallel_executor.run_all([
            (assignment.assignment_id, self._assignment_job(state, assignment))
            for assignment in pending
        ])
        for assignment, outcome in zip(pending, outcomes):
            if outcome.error is not None and not assignment.is_terminal:
                await self._finish_assignment(state, assignment, None, f"Branch error: {outcome.error}")

        sections = []
        for branch, assignment in zip(branches, pending):
            header = f"[{branch.agent_id} / {branch.specialty}]"
            if assignment.status == AssignmentStatus.COMPLETED:
                sections.append(f"{header}\n{assignment.result}")
            else:
                sections.append(f"{header} {FAILURE_MARKER} {assignment.error}")

        synthesis_input = (
            f"Task: {task}\n\n"
            f"Combine the following branch results into one answer.\n\n"
            + "\n\n".join(sections)
        )
        synthesizer = await self._run_assignment(
            state, state.definition.synthesizer_id, synthesis_input, len(branches)
        )
        if synthesizer.status == AssignmentStatus.FAILED:
            raise _WorkflowFailure(f"Synthesizer failed: {synthesizer.error}", CAUSE_SYNTHESIZER_FAILED)
        return synthesizer.result or ""

    async def _run_hierarchical(self, state: _ExecutionState, task: str) -> str:
        """Supervisor plans, workers execute routed subtasks, supervisor finalizes"""
        definition = state.definition
        supervisor_id = definition.supervisor_id

        step_types = sorted(definition.routing_table.keys())
        planning = await self._run_assignment(state, supervisor_id, build_planning_prompt(task, step_types), 0)
        if planning.status == AssignmentStatus.FAILED:
            raise _WorkflowFailure(f"Supervisor planning failed: {planning.error}", CAUSE_SUPERVISOR_FAILED)

        plan = parse_plan(planning.result or "")
        if not plan:
            logger.warning(f"[WorkflowOrchestrator] Empty plan for '{definition.name}'; finalizing without workers")

        logger.info(f"[WorkflowOrchestrator] Plan with {len(plan)} step(s) for '{definition.name}'")

        worker_assignments: List[Tuple[PlanStep, AgentAssignment]] = []
        if definition.concurrent_workers:
            for wave in compute_waves(plan):
                wave_assignments = await self._prepare_workers(state, wave)
                worker_assignments.extend(wave_assignments)
                runnable = [a for _, a in wave_assignments if not a.is_terminal]
                outcomes = await self.parallel_executor.run_all([
                    (assignment.assignment_id, self._assignment_job(state, assignment))
                    for assignment in runnable
                ])
                for assignment, outcome in zip(runnable, outcomes):
                    if outcome.error is not None and not assignment.is_terminal:
                        await self._finish_assignment(state, assignment, None, f"Worker error: {outcome.error}")
        else:
            for step in plan:
                prepared = await self._prepare_workers(state, [step])
                worker_assignments.extend(prepared)
                assignment = prepared[0][1]
                if not assignment.is_terminal:
                    await self._execute_assignment(state, assignment)

        digest = self._build_digest(task, worker_assignments)
        final = await self._run_assignment(state, supervisor_id, digest, len(state.assignments))
        if final.status == AssignmentStatus.FAILED:
            raise _WorkflowFailure(f"Supervisor finalization failed: {final.error}", CAUSE_SUPERVISOR_FAILED)
        return final.result or ""

    async def _prepare_workers(
        self,
        state: _ExecutionState,
        steps: List[PlanStep]
    ) -> List[Tuple[PlanStep, AgentAssignment]]:
        """Create worker assignments; unroutable steps fail immediately"""
        prepared = []
        for step in steps:
            worker_id = state.definition.route(step.type)
            assignment = self._new_assignment(
                state, worker_id or f"unrouted:{step.type}", step.description, len(state.assignments)
            )
            await self._save_assignment(assignment)
            if worker_id is None:
                await self._finish_assignment(
                    state, assignment, None, f"No worker routed for subtask type '{step.type}'"
                )
            prepared.append((step, assignment))
        return prepared

    def _build_digest(self, task: str, worker_assignments: List[Tuple[PlanStep, AgentAssignment]]) -> str:
        preview = self.settings.RESULT_PREVIEW_CHARS
        lines = [f"Task: {task}", "", "Worker results:"]
        for step, assignment in worker_assignments:
            lines.append(f"{step.index + 1}. [{step.type}] {step.description} ({assignment.agent_id})")
            if assignment.status == AssignmentStatus.COMPLETED:
                result = assignment.result or ""
                if len(result) > preview:
                    result = result[:preview] + "..."
                lines.append(f"   {result}")
            else:
                lines.append(f"   {FAILURE_MARKER} {assignment.error}")
        lines.extend(["", "Produce the final result for the task from these worker results."])
        return "\n".join(lines)

    # ==================== Assignments ====================

    def _new_assignment(self, state: _ExecutionState, agent_id: str, task: str, position: int) -> AgentAssignment:
        assignment = AgentAssignment(
            execution_id=state.execution.execution_id,
            agent_id=agent_id,
            task=task,
            position=position
        )
        state.assignments.append(assignment)
        return assignment

    async def _run_assignment(
        self,
        state: _ExecutionState,
        agent_id: str,
        task: str,
        position: int
    ) -> AgentAssignment:
        assignment = self._new_assignment(state, agent_id, task, position)
        await self._save_assignment(assignment)
        await self._execute_assignment(state, assignment)
        return assignment

    def _assignment_job(self, state: _ExecutionState, assignment: AgentAssignment):
        async def job() -> AgentAssignment:
            await self._execute_assignment(state, assignment)
            return assignment
        return job

    async def _execute_assignment(self, state: _ExecutionState, assignment: AgentAssignment) -> None:
        """Drive one assignment to a terminal status; never raises for agent failures"""
        try:
            agent = self.agent_registry.get(assignment.agent_id)
        except AgentCoreError as e:
            await self._finish_assignment(state, assignment, None, e.message)
            return

        assignment.mark_assigned()
        await self._save_assignment(assignment)
        assignment.mark_running()
        await self._save_assignment(assignment)

        conversation_id = f"{state.conversation_id}:{assignment.agent_id}"
        try:
            result = await agent.process_query(conversation_id, assignment.task, self.use_retrieval)
        except Exception as e:
            logger.error(f"[WorkflowOrchestrator] Agent {assignment.agent_id} raised: {e}")
            await self._finish_assignment(state, assignment, None, f"Agent error: {e}")
            return

        if result.success:
            await self._finish_assignment(state, assignment, result.message or "", None)
        else:
            await self._finish_assignment(state, assignment, None, result.error or "Agent failed")

    async def _finish_assignment(
        self,
        state: _ExecutionState,
        assignment: AgentAssignment,
        result: Optional[str],
        error: Optional[str]
    ) -> None:
        if error is None:
            assignment.mark_completed(result or "")
        else:
            assignment.mark_failed(error)
        # Terminal assignments are skipped on expiry, so the record must land even if cancelled here
        await asyncio.shield(self._commit_assignment(state, assignment))

    async def _commit_assignment(self, state: _ExecutionState, assignment: AgentAssignment) -> None:
        """TASK_STEP record first, then the persisted assignment state"""
        completed = assignment.status == AssignmentStatus.COMPLETED
        await self.action_log.record_action(
            conversation_id=state.conversation_id,
            kind=ActionKind.TASK_STEP,
            status=ActionStatus.COMPLETED if completed else ActionStatus.FAILED,
            input_snapshot={
                "execution_id": assignment.execution_id,
                "assignment_id": assignment.assignment_id,
                "agent_id": assignment.agent_id,
                "position": assignment.position,
                "task": assignment.task
            },
            output_snapshot={"result": assignment.result} if completed else {},
            duration=(assignment.completed_at - assignment.created_at).total_seconds(),
            error=assignment.error
        )
        await self._save_assignment(assignment)

    async def _expire(self, state: _ExecutionState, error: str = TIMEOUT_ERROR) -> None:
        """Fail every unfinished assignment after a deadline or abort"""
        for assignment in state.assignments:
            if not assignment.is_terminal:
                await self._finish_assignment(state, assignment, None, error)

    # ==================== Persistence ====================

    async def _save_execution(self, execution: WorkflowExecution) -> None:
        try:
            await retry_once(lambda: self.workflow_repository.save_execution(execution), "save_execution")
        except PersistenceError as e:
            app_logger.error(
                f"Execution state not persisted: {e.message}",
                category=LogCategory.PERSISTENCE,
                extra_data={"execution_id": execution.execution_id, "status": execution.status.value}
            )

    async def _save_assignment(self, assignment: AgentAssignment) -> None:
        try:
            await retry_once(lambda: self.workflow_repository.save_assignment(assignment), "save_assignment")
        except PersistenceError as e:
            app_logger.error(
                f"Assignment state not persisted: {e.message}",
                category=LogCategory.PERSISTENCE,
                extra_data={"assignment_id": assignment.assignment_id, "status": assignment.status.value}
            )
