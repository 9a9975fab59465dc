from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth import CurrentUser, get_current_user, require_admin, require_manager_or_admin
from config import CORS_ORIGINS, LOG_LEVEL
from db import init_db, close_db, ShiftAssignmentDoc
from integrity import IntegrityError, InvalidShiftTimeError, ShiftAssignment, duration
from schemas import (
    ComplianceReportResponse,
    MutationDecisionResponse,
    PublishRequest,
    PublishResponse,
    ShiftCreateRequest,
    ShiftDeleteResponse,
    ShiftMutationResponse,
    ShiftResponse,
    ShiftUpdateRequest,
    ShiftValidateRequest,
)
from utils import setup_logging
import service


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(LOG_LEVEL)
    await init_db()
    yield
    await close_db()


app = FastAPI(title="shiftIntegrity", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    return JSONResponse(status_code=409, content={"detail": exc.to_dict()})


@app.exception_handler(InvalidShiftTimeError)
async def invalid_time_handler(request: Request, exc: InvalidShiftTimeError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(service.ResourceNotFoundError)
async def not_found_handler(request: Request, exc: service.ResourceNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _shift_to_response(shift: ShiftAssignmentDoc) -> ShiftResponse:
    return ShiftResponse(
        id=str(shift.id),
        schedule_id=shift.schedule_id,
        employee_id=shift.employee_id,
        date=shift.date,
        start_time=shift.start_time,
        end_time=shift.end_time,
        hours=duration(shift.start_time, shift.end_time),
        position=shift.position,
        notes=shift.notes,
        created_at=shift.created_at.isoformat(),
        updated_at=shift.updated_at.isoformat(),
    )


@app.post("/shifts", response_model=ShiftMutationResponse, status_code=201)
async def create_shift(
    request: ShiftCreateRequest,
    user: CurrentUser = Depends(require_manager_or_admin),
):
    candidate = ShiftAssignment(
        id=None,
        employee_id=request.employee_id,
        schedule_id=request.schedule_id,
        date=request.date,
        start_time=request.start_time,
        end_time=request.end_time,
        position=request.position,
        notes=request.notes,
    )
    shift = await service.create_shift(user.tenant_id, user.user_id, candidate)
    return ShiftMutationResponse(success=True, shift=_shift_to_response(shift))


@app.patch("/shifts/{shift_id}", response_model=ShiftMutationResponse)
async def update_shift(
    shift_id: str,
    request: ShiftUpdateRequest,
    user: CurrentUser = Depends(require_manager_or_admin),
):
    changes = request.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes provided")

    shift = await service.update_shift(user.tenant_id, user.user_id, shift_id, changes)
    return ShiftMutationResponse(success=True, shift=_shift_to_response(shift))


@app.delete("/shifts/{shift_id}", response_model=ShiftDeleteResponse)
async def delete_shift(
    shift_id: str,
    user: CurrentUser = Depends(require_manager_or_admin),
):
    deleted_id = await service.delete_shift(user.tenant_id, user.user_id, shift_id)
    return ShiftDeleteResponse(success=True, deleted_id=deleted_id)


@app.post("/shifts/validate", response_model=MutationDecisionResponse)
async def validate_shift(
    request: ShiftValidateRequest,
    user: CurrentUser = Depends(require_manager_or_admin),
):
    candidate = ShiftAssignment(
        id=request.shift_id,
        employee_id=request.employee_id,
        schedule_id=request.schedule_id,
        date=request.date,
        start_time=request.start_time,
        end_time=request.end_time,
        position=request.position,
        notes=request.notes,
    )
    decision = await service.preview_mutation(
        user.tenant_id,
        candidate,
        is_update=request.shift_id is not None,
    )

    if decision.allowed:
        return MutationDecisionResponse(allowed=True)
    return MutationDecisionResponse(
        allowed=False,
        reason=decision.reason.value,
        details=decision.details,
    )


@app.post("/schedules/{schedule_id}/publish", response_model=PublishResponse)
async def publish_schedule(
    schedule_id: str,
    request: PublishRequest,
    user: CurrentUser = Depends(require_admin),
):
    period = await service.publish_schedule(
        user.tenant_id,
        user.user_id,
        schedule_id,
        request.published_until,
    )
    return PublishResponse(
        schedule_id=str(period.id),
        name=period.name,
        published_until=period.published_until,
        published_at=period.published_at.isoformat(),
    )


@app.get("/employees/{employee_id}/compliance", response_model=ComplianceReportResponse)
async def get_employee_compliance(
    employee_id: str,
    start_date: date,
    end_date: date,
    user: CurrentUser = Depends(get_current_user),
):
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")

    if user.role == "employee" and user.user_id != employee_id:
        raise HTTPException(status_code=403, detail="Employees can only view their own compliance")

    report = await service.employee_compliance(user.tenant_id, employee_id, start_date, end_date)
    return ComplianceReportResponse(
        employee_id=employee_id,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        **report.to_dict(),
    )
