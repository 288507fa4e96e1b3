"""
Module calculator HTTP routes — GET /api/modules/{module}/{session_id}/defaults,
                                 POST /api/modules/{module}/{session_id}

Running a module stores its result on the profile and re-scores only the
module's domain (plus overall). The recommended module list is not touched.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, NamedTuple

import redis.asyncio as aioredis
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from finanznavigator.calculators.financing import financing_defaults, run_financing_module
from finanznavigator.calculators.pension import pension_defaults, run_pension_module
from finanznavigator.calculators.risk import risk_defaults, run_risk_module
from finanznavigator.calculators.schemas import FinancingInput, PensionInput, RiskInput
from finanznavigator.database import get_db
from finanznavigator.profile.schemas import ModuleId, Profile
from finanznavigator.profile.validator import (
    validate_financing_input,
    validate_pension_input,
    validate_risk_input,
)
from finanznavigator.session_store import (
    get_redis,
    load_profile,
    make_validation_error_response,
    pydantic_error_response,
    save_profile,
)

router = APIRouter(prefix="/api/modules", tags=["modules"])
logger = logging.getLogger(__name__)


class _Module(NamedTuple):
    input_model: type[BaseModel]
    defaults: Callable[[Profile], BaseModel]
    validate: Callable[[Any], None]
    run: Callable[[Profile, Any], Profile]


_MODULES: dict[ModuleId, _Module] = {
    ModuleId.pension: _Module(PensionInput, pension_defaults, validate_pension_input, run_pension_module),
    ModuleId.financing: _Module(FinancingInput, financing_defaults, validate_financing_input, run_financing_module),
    ModuleId.risk: _Module(RiskInput, risk_defaults, validate_risk_input, run_risk_module),
}


@router.get("/{module}/{session_id}/defaults")
async def get_module_defaults(
    module: ModuleId,
    session_id: str,
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Module inputs pre-filled from the intake answers."""
    profile = await load_profile(redis, db, session_id)
    inputs = _MODULES[module].defaults(profile)
    return JSONResponse(status_code=200, content=inputs.model_dump(mode="json"))


@router.post("/{module}/{session_id}")
async def run_module(
    module: ModuleId,
    session_id: str,
    payload: dict[str, Any] = Body(...),
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Validate the module inputs, run the calculator and return the result together
    with the updated scores.
    """
    entry = _MODULES[module]
    try:
        inputs = entry.input_model.model_validate(payload)
    except ValidationError as exc:
        return pydantic_error_response(exc, f"{module.value} input validation failed")

    try:
        entry.validate(inputs)
    except ValueError as exc:
        return make_validation_error_response(str(exc), f"{module.value} input validation failed")

    profile = await load_profile(redis, db, session_id)
    profile = entry.run(profile, inputs)
    await save_profile(redis, db, profile)

    result = getattr(profile.module_results, module.value)
    logger.info(
        "Module run session_id=%s module=%s overall=%d",
        session_id,
        module.value,
        profile.scores.overall,
    )
    return JSONResponse(
        status_code=200,
        content={
            "result": result.model_dump(mode="json"),
            "scores": profile.scores.model_dump(mode="json"),
            "recommended_modules": [m.value for m in profile.recommended_modules],
        },
    )
