# symptomlog/routes/symptoms_routes.py
import logging

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError as PydanticValidationError

from symptomlog.auth.deps import get_context, get_current_identity
from symptomlog.auth.gate import Identity
from symptomlog.context import ServiceContext
from symptomlog.models.entry import SymptomEntry
from symptomlog.schemas.symptoms import AnalyzeRequest, AnalyzeResponse
from symptomlog.utils.exceptions import ValidationError, validation_details

router = APIRouter(tags=["symptoms"])
logger = logging.getLogger("symptomlog")


async def analyze_payload(
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> AnalyzeRequest:
    """Read the body only after the caller is authenticated."""
    raw = await request.body()
    try:
        return AnalyzeRequest.model_validate_json(raw or b"")
    except PydanticValidationError as exc:
        raise ValidationError("Invalid request body", details=validation_details(exc.errors())) from exc


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    status_code=status.HTTP_200_OK,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": AnalyzeRequest.model_json_schema(ref_template="#/components/schemas/{model}"),
                },
            },
        },
    },
)
def analyze_symptoms(
    payload: AnalyzeRequest = Depends(analyze_payload),
    identity: Identity = Depends(get_current_identity),
    context: ServiceContext = Depends(get_context),
):
    """Run the rule engine, record the analysis for the caller, return the suggestions."""
    suggestions = context.rules.infer(payload.symptoms, payload.severity)

    entry = SymptomEntry.create(
        owner_id=identity.id,
        symptoms=payload.symptoms,
        severity=payload.severity,
        suggestions=suggestions,
        timestamp=context.clock.now(),
    )
    context.history.append(entry)

    logger.info({
        "function": "analyze_symptoms",
        "entry_id": entry.id,
        "severity": entry.severity.value,
        "suggestion_count": len(suggestions),
    })
    return AnalyzeResponse(suggestions=suggestions, entry_id=entry.id)
