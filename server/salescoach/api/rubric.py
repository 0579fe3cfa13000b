from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException

from salescoach.api.deps import get_rubric_service
from salescoach.schemas.rubric import (
    RubricConfig,
    RubricCreate,
    RubricUpdate,
    RubricVersionSummary,
    WeightInput,
    WeightValidation,
    validate_category_weights,
)
from salescoach.services.rubric_service import (
    RubricConflictError,
    RubricLockedError,
    RubricNotFoundError,
    RubricService,
    RubricValidationError,
)

router = APIRouter()


@contextmanager
def _rubric_errors():
    try:
        yield
    except RubricNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (RubricLockedError, RubricValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RubricConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/active", response_model=RubricConfig)
async def get_active_rubric(rubrics: RubricService = Depends(get_rubric_service)):
    config = await rubrics.get_active_config()
    if not config:
        raise HTTPException(status_code=404, detail="No active rubric config")
    return config


@router.get("/versions", response_model=list[RubricVersionSummary])
async def list_rubric_versions(rubrics: RubricService = Depends(get_rubric_service)):
    return await rubrics.list_versions()


# Declared before /{config_id} so "validate-weights" is not taken as an id
@router.post("/validate-weights", response_model=WeightValidation)
async def validate_weights(categories: list[WeightInput]):
    return validate_category_weights(categories)


@router.get("/{config_id}", response_model=RubricConfig)
async def get_rubric(config_id: str, rubrics: RubricService = Depends(get_rubric_service)):
    config = await rubrics.get_config_by_id(config_id)
    if not config:
        raise HTTPException(status_code=404, detail="Rubric config not found")
    return config


@router.post("", response_model=RubricConfig, status_code=201)
async def create_rubric(payload: RubricCreate, rubrics: RubricService = Depends(get_rubric_service)):
    with _rubric_errors():
        return await rubrics.create_version(payload)


@router.put("/{config_id}", response_model=RubricConfig)
async def update_rubric(
    config_id: str,
    payload: RubricUpdate,
    rubrics: RubricService = Depends(get_rubric_service),
):
    with _rubric_errors():
        return await rubrics.update_version(config_id, payload)


@router.post("/{config_id}/activate", response_model=RubricConfig)
async def activate_rubric(config_id: str, rubrics: RubricService = Depends(get_rubric_service)):
    with _rubric_errors():
        return await rubrics.activate_version(config_id)


@router.delete("/{config_id}", status_code=204)
async def delete_rubric(config_id: str, rubrics: RubricService = Depends(get_rubric_service)):
    with _rubric_errors():
        await rubrics.delete_version(config_id)
