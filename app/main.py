from fastapi import FastAPI, HTTPException

from app.config import configure_logging, get_settings
from app.schemas import (
    GenerateRequest,
    GridResponse,
    SummaryResponse,
    TimetableResponse,
    TimetableSlot,
    UpdateSlotRequest,
    ValidationResponse,
    ViolationsResponse,
)
from app.services.timetable_service import GenerationError, InfeasibleError, TimetableService

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Timetable Generator Backend")

service = TimetableService(settings)


@app.post("/validate", response_model=ValidationResponse)
def validate_inputs(payload: GenerateRequest):
    return ValidationResponse(errors=service.validate(payload))


@app.post("/generate", response_model=TimetableResponse)
def generate_timetable(payload: GenerateRequest):
    try:
        slots = service.generate(payload)
    except InfeasibleError as e:
        raise HTTPException(status_code=400, detail={"errors": e.errors})
    except GenerationError as e:
        raise HTTPException(status_code=500, detail=f"Generation failed: {e}")
    return TimetableResponse(slots=slots, count=len(slots), capacity=service.capacity())


@app.get("/timetable", response_model=TimetableResponse)
def get_timetable():
    slots = service.get_timetable()
    return TimetableResponse(slots=slots, count=len(slots), capacity=service.capacity())


@app.delete("/timetable")
def clear_timetable():
    service.clear_timetable()
    return {"status": "ok"}


@app.get("/timetable/violations", response_model=ViolationsResponse)
def get_violations():
    return ViolationsResponse(violations=service.violations())


@app.get("/summary", response_model=SummaryResponse)
def get_summary():
    return SummaryResponse(**service.summary())


@app.get("/timetable/class/{class_id}", response_model=GridResponse)
def get_class_timetable(class_id: str):
    try:
        grid = service.class_grid(class_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return GridResponse(periods=service.state.periods, grid=grid)


@app.get("/timetable/faculty/{faculty_id}", response_model=GridResponse)
def get_faculty_timetable(faculty_id: str):
    try:
        grid = service.faculty_grid(faculty_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return GridResponse(periods=service.state.periods, grid=grid)


@app.put("/update-slot", response_model=TimetableSlot)
def update_slot(req: UpdateSlotRequest):
    try:
        return service.update_slot(req)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/slot/{slot_id}")
def delete_slot(slot_id: str):
    try:
        service.delete_slot(slot_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "ok"}
