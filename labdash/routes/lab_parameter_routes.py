# labdash/routes/lab_parameter_routes.py
import logging
from typing import List

from fastapi import APIRouter, Body, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from labdash.auth.deps import get_current_user
from labdash.db.session import get_db
from labdash.models.user import User
from labdash.routes.extract_routes import extraction_http_error, get_invoker, read_upload, sanitize_filename
from labdash.schemas.lab_parameters import DashboardStats, ParameterTrend
from labdash.services import extraction
from labdash.services.dashboard import build_trends, compute_stats
from labdash.services.errors import ExtractionError
from labdash.services.gemini import ModelFallbackInvoker
from labdash.services.ingestion import IngestionResult, ParameterIngestionService
from labdash.services.normalizer import ensure_canonical_name
from labdash.services.parameter_store import LabParameterStore
from labdash.utils.rate_limit import EXTRACT_RATE_LIMIT, limiter, user_rate_key

logger = logging.getLogger("labdash")

router = APIRouter(prefix="/api/lab-parameters", tags=["lab-parameters"])


def _summary_message(result: IngestionResult) -> str:
    return f"Added {result.added} parameters, skipped {result.skipped} duplicates"


@router.get("")
def list_parameters(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    items = LabParameterStore(db).list_for_user(user.id)
    return {"success": True, "parameters": [p.to_dict() for p in items]}


@router.post("")
def add_parameters(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    parameters = payload.get("parameters")
    if not isinstance(parameters, list):
        raise HTTPException(status_code=400, detail="Parameters array is required")

    incoming = []
    for param in parameters:
        if isinstance(param, dict) and isinstance(param.get("parameterName"), str):
            param = {**param, "parameterName": ensure_canonical_name(param["parameterName"])}
        incoming.append(param)

    result = ParameterIngestionService(LabParameterStore(db)).ingest(user.id, incoming)
    return {
        "success": True,
        "message": _summary_message(result),
        "results": result.counts(),
        "parameters": [p.to_dict() for p in result.parameters],
    }


@router.post("/upload")
@limiter.limit(EXTRACT_RATE_LIMIT, key_func=user_rate_key)
async def upload_reports(
    request: Request,
    files: List[UploadFile] = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    invoker: ModelFallbackInvoker = Depends(get_invoker),
):
    """Extract and store several reports; one failing file never stops the rest."""
    service = ParameterIngestionService(LabParameterStore(db))
    total = IngestionResult()
    outcomes = []
    for upload in files:
        name = sanitize_filename(upload.filename or "upload")
        try:
            data = await read_upload(upload)
            extracted = await extraction.extract_document(data, name, upload.content_type, invoker=invoker)
        except HTTPException as exc:
            outcomes.append({"fileName": name, "status": "error", "error": str(exc.detail)})
            continue
        except ExtractionError as exc:
            logger.warning({"function": "upload_reports", "file": name, "error": str(exc)})
            detail = extraction_http_error(exc).detail
            message = detail.get("error") if isinstance(detail, dict) else detail
            outcomes.append({"fileName": name, "status": "error", "error": message})
            continue

        result = service.ingest(user.id, extracted.parameters)
        total.merge(result)
        outcomes.append({
            "fileName": name,
            "status": "ok",
            "error": None,
            "modelUsed": extracted.model_used,
            "documentType": extracted.document_type,
            "labName": extracted.lab_name,
            "results": result.counts(),
        })

    return {
        "success": any(o["status"] == "ok" for o in outcomes),
        "message": _summary_message(total),
        "results": total.counts(),
        "files": outcomes,
        "parameters": [p.to_dict() for p in total.parameters],
    }


@router.delete("")
def clear_parameters(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    deleted = LabParameterStore(db).delete_many(user.id)
    return {"success": True, "message": f"Deleted {deleted} parameters", "deletedCount": deleted}


@router.get("/stats", response_model=DashboardStats)
def parameter_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return compute_stats(LabParameterStore(db).list_for_user(user.id))


@router.get("/trends", response_model=List[ParameterTrend])
def parameter_trends(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return build_trends(LabParameterStore(db).list_for_user(user.id))


@router.delete("/{parameter_id}")
def delete_parameter(
    parameter_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not LabParameterStore(db).delete_one(user.id, parameter_id):
        raise HTTPException(status_code=404, detail="Parameter not found")
    return {"success": True, "message": "Parameter deleted successfully"}
