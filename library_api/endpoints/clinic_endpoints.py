from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from minirel.errors import NotFoundError, ConstraintViolationError
from minirel.session import Session
from library_api.models import Physician, Patient, Appointment
from library_api.deps import get_session

router = APIRouter()


class PersonCreate(BaseModel):
    name: str


class AppointmentCreate(BaseModel):
    physician_id: int
    patient_id: int
    scheduled_at: str | None = None


def person_out(p):
    return {"id": p.id, "name": p.name}


def _find(session, model, pk):
    try:
        return session.find(model, pk)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"{model.__name__} not found")


@router.post("/api/physicians")
def add_physician(physician: PersonCreate, session: Session = Depends(get_session)):
    return person_out(session.create(Physician, name=physician.name))


@router.get("/api/physicians")
def get_physicians(session: Session = Depends(get_session)):
    return [person_out(p) for p in session.query(Physician).order_by("name")]


@router.post("/api/patients")
def add_patient(patient: PersonCreate, session: Session = Depends(get_session)):
    return person_out(session.create(Patient, name=patient.name))


@router.get("/api/patients")
def get_patients(session: Session = Depends(get_session)):
    return [person_out(p) for p in session.query(Patient).order_by("name")]


@router.post("/api/appointments")
def add_appointment(appointment: AppointmentCreate, session: Session = Depends(get_session)):
    try:
        new_appointment = session.create(
            Appointment,
            physician_id=appointment.physician_id,
            patient_id=appointment.patient_id,
            scheduled_at=appointment.scheduled_at,
        )
    except ConstraintViolationError:
        raise HTTPException(status_code=409, detail="Unknown physician or patient")
    return {
        "appointment_id": new_appointment.id,
        "physician_id": new_appointment.physician_id,
        "patient_id": new_appointment.patient_id,
        "scheduled_at": new_appointment.scheduled_at,
    }


@router.get("/api/physicians/{physician_id}/patients")
def get_physician_patients(physician_id: int, session: Session = Depends(get_session)):
    physician = _find(session, Physician, physician_id)
    return [person_out(p) for p in physician.patients]


@router.get("/api/patients/{patient_id}/physicians")
def get_patient_physicians(patient_id: int, session: Session = Depends(get_session)):
    patient = _find(session, Patient, patient_id)
    return [person_out(p) for p in patient.physicians]


@router.delete("/api/physicians/{physician_id}")
def delete_physician(physician_id: int, session: Session = Depends(get_session)):
    session.delete(_find(session, Physician, physician_id))
    return {"message": "Physician deleted"}
