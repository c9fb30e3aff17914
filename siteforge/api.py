"""
HTTP API for plan compilation.

POST a configuration, get back the provisioning plan.
"""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from siteforge.backend import DryRunBackend, apply_plan
from siteforge.compiler import compile_plan
from siteforge.errors import BackendError, ConfigError, CycleError, DuplicateIdError, UnknownReferenceError
from siteforge.models import Configuration
from siteforge.plan_emitter import plan_to_dict

logger = logging.getLogger(__name__)

app = FastAPI(title="SiteForge")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PlanRequest(BaseModel):
    stage: str
    content_path: str
    domain_name: str
    subdomain_name: str
    account: str
    region: str

    def to_configuration(self) -> Configuration:
        return Configuration(
            stage=self.stage,
            content_path=self.content_path,
            domain_name=self.domain_name,
            subdomain_name=self.subdomain_name,
            account=self.account,
            region=self.region,
        )


def _compile(request: PlanRequest):
    try:
        return compile_plan(request.to_configuration())
    except ConfigError as e:
        logger.info("Rejected configuration with %d violations", len(e.violations))
        raise HTTPException(status_code=422, detail={
            "message": "Invalid configuration",
            "violations": [
                {"field": v.field, "reason": v.reason} for v in e.violations
            ],
        })
    except (DuplicateIdError, UnknownReferenceError, CycleError) as e:
        raise HTTPException(status_code=409, detail=e.message)


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.post("/plan")
def create_plan(request: PlanRequest):
    plan = _compile(request)
    return plan_to_dict(plan)


@app.post("/plan/dry-run")
def dry_run_plan(request: PlanRequest):
    plan = _compile(request)
    backend = DryRunBackend(account=request.account, region=request.region)
    try:
        handles = apply_plan(plan, backend)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message)

    return {
        "plan": plan_to_dict(plan)["plan"],
        "handles": [
            {
                "id": handle.id,
                "kind": handle.kind.value,
                "physical_id": handle.physical_id,
                "attributes": handle.attributes,
            }
            for handle in handles
        ],
    }
