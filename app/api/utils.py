"""
Utility functions for API endpoints
"""
from fastapi import HTTPException

from app.database.cache import TTLCache
from app.services.assessment.engine import AssessmentEngine


def get_session_or_404(store: TTLCache, session_id: str) -> AssessmentEngine:
    """
    Look up a live assessment session

    Raises HTTPException 404 if the session does not exist or has expired
    """
    engine = store.get(session_id)
    if engine is None:
        raise HTTPException(
            status_code=404,
            detail="Session not found. It may have expired; please start the assessment again."
        )
    return engine
