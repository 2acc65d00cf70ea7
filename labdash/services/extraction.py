"""Document → normalized lab parameters (nothing is persisted here)."""
from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from labdash.services.errors import UnsupportedDocumentError
from labdash.services.extraction_parser import parse_extraction_response
from labdash.services.gemini import ModelFallbackInvoker
from labdash.services.normalizer import normalize_parameter_name

logger = logging.getLogger("labdash")

SUPPORTED_MIME_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/webp", "application/pdf"}

EXTRACTION_PROMPT = """You are a medical document analyzer specializing in laboratory reports. Analyze this medical lab report and extract ALL lab parameters.

CRITICAL: Use FULL STANDARD MEDICAL NAMES for all parameters. DO NOT use abbreviations or shortcuts.

Parameter Name Guidelines - ALWAYS use these EXACT full names:
- Use "Hemoglobin" (NOT Hb, HB%, HGB, Hb1)
- Use "Red Blood Cell Count" (NOT RBC)
- Use "White Blood Cell Count" (NOT WBC, TLC)
- Use "Platelet Count" (NOT PLT)
- Use "Hematocrit" (NOT HCT, PCV)
- Use "Mean Corpuscular Volume" (NOT MCV)
- Use "Mean Corpuscular Hemoglobin" (NOT MCH)
- Use "Mean Corpuscular Hemoglobin Concentration" (NOT MCHC)
- Use "Erythrocyte Sedimentation Rate" (NOT ESR)
- Use "Fasting Blood Sugar" (NOT FBS)
- Use "Total Cholesterol" (NOT TC)
- Use "HDL Cholesterol" (NOT HDL, HDL-C)
- Use "LDL Cholesterol" (NOT LDL, LDL-C)
- Use "Triglycerides" (NOT TG)
- Use "Alanine Aminotransferase (ALT)" (NOT SGPT, ALT)
- Use "Aspartate Aminotransferase (AST)" (NOT SGOT, AST)
- Use "Serum Creatinine" (NOT Creatinine, S.Creatinine)
- Use "Blood Urea Nitrogen" (NOT BUN)
- Use "Thyroid Stimulating Hormone (TSH)" (NOT TSH)
- Use "Glycated Hemoglobin (HbA1c)" (NOT HbA1c, A1C)

For EACH parameter found, extract:
- parameterName: The FULL STANDARD MEDICAL NAME (as per guidelines above)
- value: The numeric or text value
- unit: The unit of measurement (g/dL, mg/dL, cells/mcL, etc.)
- normalRange: The reference/normal range from the report
- status: "Low", "Normal", or "High" based on the reference range
- testDate: Date in YYYY-MM-DD format (use today if not visible)

Return ONLY valid JSON (no markdown):
{
  "parameters": [
    {
      "parameterName": "string (FULL MEDICAL NAME)",
      "value": "string",
      "unit": "string",
      "normalRange": "string",
      "status": "Low" | "Normal" | "High",
      "testDate": "YYYY-MM-DD"
    }
  ],
  "documentType": "string",
  "labName": "string (if visible)",
  "patientInfo": "string (if visible)"
}"""


@dataclass
class ExtractionResult:
    file_name: str
    model_used: str
    parameters: List[Dict[str, Any]] = field(default_factory=list)
    document_type: str = "Unknown"
    lab_name: str = "Unknown"
    extracted_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "parameters": self.parameters,
            "documentType": self.document_type,
            "labName": self.lab_name,
            "fileName": self.file_name,
            "extractedAt": self.extracted_at,
            "modelUsed": self.model_used,
        }


def resolve_mime_type(filename: str, content_type: Optional[str]) -> str:
    mt = (content_type or "").lower().split(";")[0].strip()
    if mt in SUPPORTED_MIME_TYPES:
        return mt
    if not mt or mt == "application/octet-stream":
        guessed, _ = mimetypes.guess_type(filename or "")
        if guessed and guessed.lower() in SUPPORTED_MIME_TYPES:
            return guessed.lower()
    raise UnsupportedDocumentError(f"Unsupported file type: {mt or 'unknown'}")


async def extract_document(
    data: bytes,
    filename: str,
    content_type: Optional[str],
    invoker: Optional[ModelFallbackInvoker] = None,
) -> ExtractionResult:
    mime_type = resolve_mime_type(filename, content_type)
    invoker = invoker or ModelFallbackInvoker()

    invocation = await invoker.invoke(data, mime_type, EXTRACTION_PROMPT)
    response = parse_extraction_response(invocation.text)

    extracted_at = datetime.now(timezone.utc).isoformat()
    parameters: List[Dict[str, Any]] = []
    for raw in response.parameters:
        item = raw.model_dump(by_alias=True)
        if raw.parameter_name:
            item["parameterName"] = normalize_parameter_name(raw.parameter_name)
        item["sourceFile"] = filename
        item["extractedAt"] = extracted_at
        parameters.append(item)

    logger.info({
        "function": "extract_document",
        "file": filename,
        "model": invocation.model_used,
        "parameters": len(parameters),
    })
    return ExtractionResult(
        file_name=filename,
        model_used=invocation.model_used,
        parameters=parameters,
        document_type=response.document_type or "Unknown",
        lab_name=response.lab_name or "Unknown",
        extracted_at=extracted_at,
    )


__all__ = ["EXTRACTION_PROMPT", "ExtractionResult", "extract_document", "resolve_mime_type"]
