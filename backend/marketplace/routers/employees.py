# marketplace/routers/employees.py
from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from marketplace import auth, models, plans, schemas
from marketplace.access_guard import enforce_gate, get_now, get_owner_business
from marketplace.database import get_db

logger = logging.getLogger(__name__)

# Verified staff register: name as on the national ID (Omang), phone, ID reference.
router = APIRouter(
    prefix="/business/employees",
    tags=["employees"],
    dependencies=[Depends(auth.require_business_owner)],
)


def _employee_count(db: Session, business_id: str) -> int:
    return db.scalar(
        select(func.count(models.Employee.id)).where(models.Employee.business_id == business_id)
    ) or 0


@router.get("", response_model=list[schemas.EmployeeOut])
def list_employees(
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
):
    stmt = (
        select(models.Employee)
        .where(models.Employee.business_id == business.id)
        .order_by(models.Employee.name.asc())
    )
    return db.scalars(stmt).all()


@router.post("", response_model=schemas.EmployeeOut, status_code=201)
def register_employee(
    payload: schemas.EmployeeCreateIn,
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
):
    """Needs booking access and a free slot under the plan's employee limit."""
    gate = plans.gate_employee_slot(business, _employee_count(db, business.id), now)
    enforce_gate(business, gate, plans.FEATURE_EMPLOYEES, now)

    employee = models.Employee(
        business_id=business.id,
        name=payload.name.strip(),
        phone=payload.phone.strip(),
        id_reference=payload.id_reference.strip(),
        image_url=(payload.image_url or "").strip() or None,
        created_at=now,
    )
    try:
        db.add(employee)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(employee)

    logger.info("Employee %s registered for business %s", employee.id, business.id)
    return employee


@router.delete("/{employee_id}", status_code=204)
def remove_employee(
    employee_id: str,
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
):
    employee = db.get(models.Employee, employee_id)
    if not employee or employee.business_id != business.id:
        raise HTTPException(status_code=404, detail="Employee not found")

    try:
        db.delete(employee)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return
