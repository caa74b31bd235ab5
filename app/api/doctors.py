"""
Doctor profile endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.database.backend import HostedBackendClient, get_backend
from app.services.profiles import ProfileResolutionError, get_or_create_doctor_id

router = APIRouter()


@router.get("/doctors/resolve")
async def resolve_doctor(
    user_id: str,
    email: Optional[str] = None,
    doctor: Optional[str] = None,
    backend: HostedBackendClient = Depends(get_backend),
):
    """
    Resolve the doctor profile a user acts for

    Explicit doctor id -> owned profile -> clinic-linked profile ->
    newly created default profile.
    """
    try:
        doctor_id = await get_or_create_doctor_id(backend, user_id, email=email, explicit_id=doctor)
    except ProfileResolutionError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"doctor_id": doctor_id}
