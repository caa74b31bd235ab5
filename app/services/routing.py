"""
Doctor routing and attribution

Builds the RoutingContext from share-link parameters and resolves which
doctor receives the lead when the link does not name one.
"""
import logging
from typing import Any, Mapping, Optional

from app.database.backend import BackendError, HostedBackendClient
from app.models.schemas import RoutingContext

logger = logging.getLogger(__name__)


def _first(params: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = params.get(key)
        if value:
            return str(value)
    return None


def routing_from_params(params: Mapping[str, Any]) -> RoutingContext:
    """
    Build a RoutingContext from query/body parameters

    Short names win over utm_* names ('source' over 'utm_source').
    """
    return RoutingContext(
        doctor_id=_first(params, "doctor", "doctor_id"),
        physician_id=_first(params, "physician", "physician_id"),
        source=_first(params, "source", "utm_source") or "website",
        campaign=_first(params, "campaign", "utm_campaign") or "default",
        medium=_first(params, "medium", "utm_medium") or "web",
        share_key=_first(params, "share_key", "shareKey"),
        custom_quiz_id=_first(params, "custom_quiz_id", "customQuizId"),
        clinic_name=_first(params, "clinic_name"),
    )


async def resolve_session_doctor(
    routing: RoutingContext,
    backend: HostedBackendClient,
    custom_quiz_owner: Optional[str] = None,
) -> RoutingContext:
    """
    Fill in doctor_id when the link did not carry one

    Precedence: explicit doctor -> custom quiz owner -> share key lookup.
    Lookup failures are logged and leave doctor_id unset; lead submission
    then reports that no doctor is associated with the quiz.
    """
    if routing.doctor_id:
        return routing

    if custom_quiz_owner:
        logger.info(f"Using custom quiz owner {custom_quiz_owner} as doctor")
        return routing.model_copy(update={"doctor_id": custom_quiz_owner})

    if routing.share_key:
        try:
            rows = await backend.select("quiz_shares", {"share_key": routing.share_key}, columns="doctor_id", limit=1)
        except BackendError as e:
            logger.error(f"Error fetching doctor by share key {routing.share_key}: {e}")
            return routing
        if rows and rows[0].get("doctor_id"):
            return routing.model_copy(update={"doctor_id": rows[0]["doctor_id"]})
        logger.warning(f"No doctor found for share key {routing.share_key}")

    return routing
