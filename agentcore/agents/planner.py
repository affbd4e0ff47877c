"""
Plan Parsing
Turns a supervisor's planning reply into ordered PlanSteps and groups
them into dependency waves for concurrent worker execution.
"""
from typing import Any, Dict, List, Optional
import json
import logging
import re

from .types import PlanStep

logger = logging.getLogger(__name__)

DEFAULT_STEP_TYPE = "general"

# "type: description", optionally numbered or bulleted
_LINE_PATTERN = re.compile(r'^\s*(?:[-*•]|\d+[.)])?\s*([A-Za-z][\w-]*)\s*:\s*(.+?)\s*$')
_NUMBERED_PATTERN = re.compile(r'^\s*(?:[-*•]|\d+[.)])\s*(.+?)\s*$')


def build_planning_prompt(task: str, step_types: List[str]) -> str:
    """Instruction given to a supervisor for its planning call"""
    types = ", ".join(step_types) if step_types else DEFAULT_STEP_TYPE
    return f"""Break the following task into subtasks.

Respond with JSON:
{{"subtasks": [{{"id": 1, "type": "<type>", "description": "<what to do>", "depends_on": []}}]}}
or with one "type: description" line per subtask.

Available types: {types}

Task: {task}"""


def _extract_json(content: str) -> Optional[Any]:
    """Find a JSON object or array in a model reply"""
    fenced = re.search(r'```(?:json)?\s*(.*?)\s*```', content, re.DOTALL)
    content = (fenced.group(1) if fenced else content).strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass

    # Outermost bracket decides whether an object or an array is tried first
    patterns = [r'\{.*\}', r'\[.*\]']
    first_brace, first_bracket = content.find("{"), content.find("[")
    if first_bracket != -1 and (first_brace == -1 or first_bracket < first_brace):
        patterns.reverse()

    for pattern in patterns:
        match = re.search(pattern, content, re.DOTALL)
        if not match:
            continue
        try:
            return json.loads(match.group())
        except json.JSONDecodeError:
            continue
    return None


def _steps_from_json(data: Any) -> Optional[List[PlanStep]]:
    items = data.get("subtasks", data.get("steps")) if isinstance(data, dict) else data
    if not isinstance(items, list):
        return None

    entries = [item for item in items if isinstance(item, dict) and str(item.get("description", "")).strip()]

    # Step ids default to 1-based positions
    id_to_index: Dict[str, int] = {}
    for index, item in enumerate(entries):
        id_to_index[str(item.get("id", index + 1))] = index

    steps = []
    for index, item in enumerate(entries):
        raw_deps = item.get("depends_on", item.get("dependencies", [])) or []
        if not isinstance(raw_deps, list):
            raw_deps = [raw_deps]
        # Only earlier steps may be depended on
        dependencies = sorted({
            id_to_index[str(dep)] for dep in raw_deps
            if str(dep) in id_to_index and id_to_index[str(dep)] < index
        })
        steps.append(PlanStep(
            index=index,
            type=str(item.get("type") or DEFAULT_STEP_TYPE).strip().lower(),
            description=str(item["description"]).strip(),
            dependencies=tuple(dependencies)
        ))
    return steps


def _steps_from_lines(content: str) -> List[PlanStep]:
    steps = []
    for line in content.splitlines():
        if not line.strip():
            continue
        match = _LINE_PATTERN.match(line)
        if match:
            step_type, description = match.group(1).lower(), match.group(2)
        else:
            numbered = _NUMBERED_PATTERN.match(line)
            if not numbered:
                continue
            step_type, description = DEFAULT_STEP_TYPE, numbered.group(1)
        steps.append(PlanStep(index=len(steps), type=step_type, description=description))
    return steps


def parse_plan(content: str) -> List[PlanStep]:
    """
    Parse a supervisor reply into plan steps.

    JSON (``{"subtasks": [...]}`` or a bare list) is preferred; otherwise
    each ``type: description`` line, or numbered/bulleted line, is a step.
    A reply with none of these becomes one general step carrying the
    whole reply. Only an empty reply yields no steps.
    """
    if not content or not content.strip():
        return []

    data = _extract_json(content)
    if data is not None:
        steps = _steps_from_json(data)
        if steps:
            logger.debug(f"[Planner] Parsed {len(steps)} step(s) from JSON plan")
            return steps

    steps = _steps_from_lines(content)
    if not steps:
        logger.debug("[Planner] Unstructured plan; using the whole reply as one step")
        return [PlanStep(index=0, type=DEFAULT_STEP_TYPE, description=content.strip())]

    logger.debug(f"[Planner] Parsed {len(steps)} step(s) from line plan")
    return steps


def compute_waves(steps: List[PlanStep]) -> List[List[PlanStep]]:
    """
    Group steps into dependency waves.

    A step runs in the wave after its latest dependency; steps without
    dependencies form the first wave. Within a wave, plan order is kept.
    """
    levels: Dict[int, int] = {}
    for step in sorted(steps, key=lambda s: s.index):
        known = [levels[dep] for dep in step.dependencies if dep in levels]
        levels[step.index] = (max(known) + 1) if known else 0

    waves: List[List[PlanStep]] = []
    for step in sorted(steps, key=lambda s: s.index):
        level = levels[step.index]
        while len(waves) <= level:
            waves.append([])
        waves[level].append(step)
    return waves
