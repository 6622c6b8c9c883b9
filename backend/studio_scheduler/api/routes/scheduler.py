"""
Scheduler Structure API Routes.

Exposes the derived schedule structure of a job, job and fleet statistics,
and the two mutations the structure reacts to: task reclassification and
order-to-task synchronization.
"""

from fastapi import APIRouter, HTTPException, Query, status

from ...application.dtos.scheduling_dtos import (
    FleetStatsResponse,
    JobStatsResponse,
    MutationResult,
    ReclassifyRequest,
    StructureResponse,
)
from ...core.observability import set_job_id, set_studio_id
from ...domain.scheduling.services.block_grouper import section_task_counts
from ...domain.scheduling.services.row_filters import (
    filter_rows_by_collapsed_categories,
    filter_rows_by_expanded_sections,
    filter_rows_by_expanded_stages,
)
from ...domain.scheduling.value_objects.date_only import DateOnly
from ...domain.shared.exceptions import (
    CollaboratorError,
    DomainError,
    ErrorType,
    NotFoundError,
    ValidationError,
)
from ..deps import ReclassificationServiceDep, StructureServiceDep, SyncServiceDep

router = APIRouter(prefix="/studios/{studio_id}", tags=["scheduler"])

_STATUS_BY_ERROR_TYPE = {
    ErrorType.VALIDATION.value: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorType.NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorType.COLLABORATOR.value: status.HTTP_502_BAD_GATEWAY,
}


def _http_error(error: DomainError) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.to_dict())
    if isinstance(error, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error.to_dict()
        )
    if isinstance(error, CollaboratorError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error.to_dict())
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.to_dict())


def _parse_today(today: str | None) -> DateOnly | None:
    try:
        return DateOnly.parse(today)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid date for 'today': {today}",
        )


def _checked(result: MutationResult) -> MutationResult:
    """Superseded results are returned as is; failures become HTTP errors."""
    if result.success or result.superseded:
        return result
    raise HTTPException(
        status_code=_STATUS_BY_ERROR_TYPE.get(result.error_type or "", status.HTTP_409_CONFLICT),
        detail={"type": result.error_type, "message": result.error},
    )


@router.get(
    "/jobs/{job_id}/structure",
    summary="Get job schedule structure",
    description="Build the ordered row list of a job from the current catalog and job snapshot.",
    response_model=StructureResponse,
    responses={
        404: {"description": "Studio or job not found"},
        502: {"description": "Collaborator unavailable"},
    },
)
async def get_job_structure(
    studio_id: str,
    job_id: str,
    structure_service: StructureServiceDep,
    include_phantoms: bool = Query(True, description="Emit add-task and add-category rows"),
    active_section: list[str] | None = Query(
        None, description="Sections rendered first, in this order"
    ),
    expanded_section: list[str] | None = Query(
        None, description="Only these sections show their content"
    ),
    expanded_stage: list[str] | None = Query(
        None, description="Only these stage keys show their content"
    ),
    collapsed_category: list[str] | None = Query(
        None, description="Category row ids whose tasks are hidden"
    ),
) -> StructureResponse:
    set_studio_id(studio_id)
    set_job_id(job_id)
    try:
        structure = await structure_service.load(
            studio_id,
            job_id,
            include_phantoms=include_phantoms,
            active_section_ids=active_section,
        )
    except DomainError as e:
        raise _http_error(e)

    rows = list(structure.rows)
    if expanded_section is not None:
        rows = filter_rows_by_expanded_sections(rows, set(expanded_section))
    if expanded_stage is not None:
        rows = filter_rows_by_expanded_stages(rows, set(expanded_stage))
    if collapsed_category:
        rows = filter_rows_by_collapsed_categories(rows, set(collapsed_category))

    return StructureResponse(
        studio_id=studio_id,
        job_id=job_id,
        catalog_available=structure.catalog_available,
        token=structure.token,
        total_tasks=structure.task_count,
        section_task_counts=section_task_counts(structure.rows),
        alert_section_ids=structure.classification.alert_section_ids,
        unclassified_task_ids=structure.classification.unclassified_task_ids,
        rows=rows,
    )


@router.get(
    "/jobs/{job_id}/stats",
    summary="Get job statistics",
    response_model=JobStatsResponse,
    responses={404: {"description": "Studio or job not found"}},
)
async def get_job_stats(
    studio_id: str,
    job_id: str,
    structure_service: StructureServiceDep,
    today: str | None = Query(None, description="Reference day (ISO date), defaults to today in UTC"),
) -> JobStatsResponse:
    set_studio_id(studio_id)
    set_job_id(job_id)
    reference = _parse_today(today)
    try:
        day, stats = await structure_service.job_stats(studio_id, job_id, today=reference)
    except DomainError as e:
        raise _http_error(e)
    return JobStatsResponse(studio_id=studio_id, job_id=job_id, today=day, stats=stats)


@router.get(
    "/fleet/stats",
    summary="Get fleet statistics",
    description="Per-job statistics for every job of the studio plus their totals.",
    response_model=FleetStatsResponse,
)
async def get_fleet_stats(
    studio_id: str,
    structure_service: StructureServiceDep,
    today: str | None = Query(None, description="Reference day (ISO date), defaults to today in UTC"),
) -> FleetStatsResponse:
    set_studio_id(studio_id)
    reference = _parse_today(today)
    try:
        fleet = await structure_service.fleet_stats(studio_id, today=reference)
    except DomainError as e:
        raise _http_error(e)
    return FleetStatsResponse(studio_id=studio_id, fleet=fleet)


@router.post(
    "/jobs/{job_id}/tasks/{task_id}/reclassify",
    summary="Reclassify task",
    description="Move a task to another stage and catalog category.",
    response_model=MutationResult,
    responses={
        404: {"description": "Job or task not found"},
        409: {"description": "Reclassification rejected"},
        422: {"description": "Unknown stage or category"},
    },
)
async def reclassify_task(
    studio_id: str,
    job_id: str,
    task_id: str,
    request: ReclassifyRequest,
    reclassification_service: ReclassificationServiceDep,
) -> MutationResult:
    set_studio_id(studio_id)
    set_job_id(job_id)
    try:
        result = await reclassification_service.reclassify(
            studio_id,
            job_id,
            task_id,
            request.stage,
            request.catalog_category_id,
            request_id=request.request_id,
        )
    except DomainError as e:
        raise _http_error(e)
    return _checked(result)


@router.post(
    "/jobs/{job_id}/sync",
    summary="Synchronize tasks from order",
    description="Create, update and remove scheduled tasks so they match the job's approved order items.",
    response_model=MutationResult,
    responses={
        404: {"description": "Studio or job not found"},
        502: {"description": "Collaborator unavailable"},
    },
)
async def sync_tasks_from_order(
    studio_id: str,
    job_id: str,
    sync_service: SyncServiceDep,
) -> MutationResult:
    set_studio_id(studio_id)
    set_job_id(job_id)
    try:
        result = await sync_service.sync(studio_id, job_id)
    except DomainError as e:
        raise _http_error(e)
    return _checked(result)
