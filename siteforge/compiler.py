"""
Plan Compiler Module

Responsibility:
- Orchestrate: validate configuration -> declare stack -> resolve graph -> emit plan
- Halt on the first error; a malformed plan is never produced

Flow:
Configuration -> validate() -> declare_static_site() -> build() -> emit()
"""

import logging
from typing import Optional

from siteforge.contracts import check_contracts
from siteforge.models import Configuration, ProvisioningPlan
from siteforge.plan_emitter import emit
from siteforge.stack import StackHooks, declare_static_site
from siteforge.validator import validate

logger = logging.getLogger(__name__)


def compile_plan(config: Configuration, hooks: Optional[StackHooks] = None) -> ProvisioningPlan:
    """
    Compile a configuration into a provisioning plan.

    Raises ConfigError, DuplicateIdError, UnknownReferenceError or
    CycleError; none of them are recovered here.
    """
    validate(config)

    graph = declare_static_site(config, hooks).build()

    for violation in check_contracts(graph):
        logger.warning("Contract: %s.%s: %s", violation.node_id, violation.path, violation.reason)

    return emit(graph, stage=config.stage)
