from fastapi import APIRouter, Depends

from ..deps import ResolvedSession, require_session
from ..schemas import SessionEnvelope, SessionOut, UserOut

router = APIRouter()


def session_envelope(resolved: ResolvedSession) -> SessionEnvelope:
    return SessionEnvelope(
        session=SessionOut.model_validate(resolved.session),
        user=UserOut.model_validate(resolved.user),
    )


@router.get("/session", response_model=SessionEnvelope)
def get_session(auth: ResolvedSession = Depends(require_session)):
    """Current session and user; 401 when signed out."""
    return session_envelope(auth)
