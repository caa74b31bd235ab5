"""
Doctor profile resolution

Decides which doctor profile a signed-in user acts for. Team members
(staff/managers) act for the clinic's main doctor; regular users act for
their own profile, which is created on first use.
"""
import logging
from typing import Any, Dict, List, Optional

from app.database.backend import BackendError, HostedBackendClient

logger = logging.getLogger(__name__)

PROFILES_TABLE = "doctor_profiles"


class ProfileResolutionError(Exception):
    """No profile could be found or created for the user"""


def _is_team_member(profile: Dict[str, Any]) -> bool:
    return bool(profile.get("is_staff") or profile.get("is_manager"))


def resolve_doctor_id(profiles: List[Dict[str, Any]], explicit_id: Optional[str] = None) -> Optional[str]:
    """
    Pick the doctor id from a user's profiles, oldest first

    Precedence:
        1. explicit_id (e.g. from the URL)
        2. an owned (non team member) profile
        3. the clinic doctor linked from a team member profile (doctor_id_clinic)
        4. a team member profile without a clinic link (acts for itself)

    Returns:
        Doctor id, or None when the caller should create a default profile
    """
    if explicit_id:
        return explicit_id

    for profile in profiles:
        if not _is_team_member(profile) and profile.get("id"):
            return profile["id"]

    for profile in profiles:
        if _is_team_member(profile) and profile.get("doctor_id_clinic"):
            return profile["doctor_id_clinic"]

    for profile in profiles:
        if profile.get("id"):
            return profile["id"]

    return None


def default_profile(user_id: str, email: Optional[str] = None) -> Dict[str, Any]:
    """Row inserted for a user with no profile yet"""
    return {
        "user_id": user_id,
        "email": email,
        "first_name": "",
        "last_name": "",
        "access_control": True,
    }


async def get_or_create_doctor_id(
    backend: HostedBackendClient,
    user_id: str,
    email: Optional[str] = None,
    explicit_id: Optional[str] = None,
) -> str:
    """
    Resolve the doctor id for a user, creating a default profile if needed

    Raises:
        ProfileResolutionError: lookup or creation failed
    """
    if explicit_id:
        return explicit_id

    try:
        profiles = await backend.select(PROFILES_TABLE, {"user_id": user_id}, order="created_at.asc")
    except BackendError as e:
        logger.error(f"Error fetching doctor profiles for user {user_id}: {e}")
        raise ProfileResolutionError("Failed to fetch doctor profile") from e

    doctor_id = resolve_doctor_id(profiles)
    if doctor_id:
        return doctor_id

    logger.info(f"No doctor profile found for user {user_id}, creating one")
    try:
        created = await backend.insert(PROFILES_TABLE, default_profile(user_id, email))
    except BackendError as e:
        logger.error(f"Error creating doctor profile for user {user_id}: {e}")
        raise ProfileResolutionError("Failed to create doctor profile") from e

    if not created.get("id"):
        raise ProfileResolutionError("Failed to create doctor profile")
    return created["id"]
