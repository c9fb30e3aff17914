"""
Plan Emitter Module

Responsibility:
- Turn a resolved graph into a ProvisioningPlan, one intent per node
- Replace dependency ids with typed References
- Serialize plans deterministically (YAML and JSON)
- Preserve References symbolically; resolving them is the backend's job

This is PURE rendering logic.
"""

import json
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

import yaml

from siteforge.contracts import reference_to
from siteforge.graph import ResolvedGraph, ResourceGraph
from siteforge.models import ProvisioningPlan, Reference, ResourceIntent

logger = logging.getLogger(__name__)


def emit(graph: ResolvedGraph, stage: str = "") -> ProvisioningPlan:
    """
    Emit a provisioning plan from a resolved graph.

    Plan order equals graph order. A ResourceGraph that has not been
    resolved yet is built first, so UnknownReferenceError and CycleError
    surface here instead of an unordered plan. The graph is not modified.
    """
    if isinstance(graph, ResourceGraph):
        graph = graph.build()
    elif not isinstance(graph, ResolvedGraph):
        raise TypeError(f"emit() expects a ResolvedGraph, got {type(graph).__name__}")

    intents = []

    for node in graph:
        depends_on = tuple(reference_to(graph.get(dep_id)) for dep_id in node.depends_on)
        intents.append(ResourceIntent(
            id=node.id,
            kind=node.kind,
            properties=node.properties,
            depends_on=depends_on,
        ))

    logger.info("Emitted plan with %d intents for stage '%s'", len(intents), stage)
    return ProvisioningPlan(stage=stage, intents=tuple(intents))


def plan_to_dict(plan: ProvisioningPlan) -> dict:
    """Render a plan into plain data with References as ${id.attribute}."""
    return {
        "plan": {
            "stage": plan.stage,
            "intents": [_render_intent(intent) for intent in plan.intents],
        }
    }


def render_yaml(plan: ProvisioningPlan) -> str:
    """Render a plan as YAML."""
    return yaml.dump(plan_to_dict(plan), sort_keys=False, default_flow_style=False, allow_unicode=True)


def render_json(plan: ProvisioningPlan) -> str:
    """Render a plan as JSON."""
    return json.dumps(plan_to_dict(plan), indent=2)


def _render_intent(intent: ResourceIntent) -> dict:
    intent_dict = {
        "id": intent.id,
        "kind": intent.kind.value,
    }

    if intent.depends_on:
        intent_dict["depends_on"] = [ref.render() for ref in intent.depends_on]

    intent_dict["properties"] = _render_value(intent.properties)
    return intent_dict


def _render_value(value: Any) -> Any:
    """Render nested values, preserving key order."""
    if isinstance(value, Reference):
        return value.render()
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, Mapping):
        return {str(key): _render_value(item) for key, item in value.items()}
    elif isinstance(value, (list, tuple)):
        return [_render_value(item) for item in value]
    else:
        return value
