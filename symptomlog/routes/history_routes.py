# symptomlog/routes/history_routes.py
from fastapi import APIRouter, Depends

from symptomlog.auth.deps import get_context, get_current_identity
from symptomlog.auth.gate import Identity
from symptomlog.context import ServiceContext
from symptomlog.schemas.symptoms import HistoryResponse, SymptomEntryOut

router = APIRouter(tags=["history"])


@router.get("/history", response_model=HistoryResponse)
def list_history(
    identity: Identity = Depends(get_current_identity),
    context: ServiceContext = Depends(get_context),
):
    entries = context.history.list_by_owner(identity.id)
    return HistoryResponse(entries=[SymptomEntryOut.from_entry(e) for e in entries])
