"""Selective insertion of newly extracted lab parameters.

For every incoming parameter, in order:

1. skip it when the user already has a row with the same
   (parameter_name, value, test_date, unit);
2. otherwise skip it when the user already has a row with the same
   (parameter_name, source_file, test_date), which catches a re-processed file
   whose values were transcribed slightly differently;
3. otherwise insert it.

A unique-constraint violation on insert means a concurrent request stored the
same row first and is counted as skipped. Any other failure is counted as an
error and the batch carries on. Existing rows are never modified.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Union

from pydantic import BaseModel, ValidationError

from labdash.models.lab_parameter import UNKNOWN_SOURCE, LabParameter
from labdash.schemas.lab_parameters import LabParameterIn
from labdash.services.errors import DuplicateParameterError, InsertionError
from labdash.services.parameter_store import LabParameterStore

logger = logging.getLogger("labdash")

IncomingParameter = Union[Mapping[str, Any], BaseModel]


@dataclass
class IngestionResult:
    added: int = 0
    skipped: int = 0
    errors: int = 0
    parameters: List[LabParameter] = field(default_factory=list)

    def merge(self, other: "IngestionResult") -> None:
        self.added += other.added
        self.skipped += other.skipped
        self.errors += other.errors
        self.parameters.extend(other.parameters)

    def counts(self) -> Dict[str, int]:
        return {"added": self.added, "skipped": self.skipped, "errors": self.errors}


def _as_mapping(param: IncomingParameter) -> Mapping[str, Any]:
    if isinstance(param, BaseModel):
        return param.model_dump(by_alias=True)
    return param


class ParameterIngestionService:
    def __init__(self, store: LabParameterStore):
        self.store = store

    def ingest(self, user_id: str, new_parameters: Iterable[IncomingParameter]) -> IngestionResult:
        result = IngestionResult()
        for index, raw in enumerate(new_parameters):
            try:
                param = LabParameterIn.model_validate(_as_mapping(raw))
            except ValidationError as exc:
                logger.warning({
                    "function": "ingest",
                    "stage": "invalid",
                    "index": index,
                    "error": exc.errors(include_url=False, include_input=False),
                })
                result.errors += 1
                continue

            try:
                created = self._insert_if_new(user_id, param)
            except DuplicateParameterError:
                result.skipped += 1
                continue
            except InsertionError as exc:
                logger.error({
                    "function": "ingest",
                    "stage": "insert_failed",
                    "index": index,
                    "parameter": param.parameter_name,
                    "error": str(exc),
                })
                result.errors += 1
                continue

            if created is None:
                result.skipped += 1
            else:
                result.added += 1
                result.parameters.append(created)

        logger.info({"function": "ingest", "user_id": str(user_id), **result.counts()})
        return result

    def _insert_if_new(self, user_id: str, param: LabParameterIn):
        source_file = param.source_file or UNKNOWN_SOURCE
        try:
            if self.store.find_one(
                user_id,
                parameter_name=param.parameter_name,
                value=param.value,
                test_date=param.test_date,
                unit=param.unit,
            ):
                return None
            if self.store.find_one(
                user_id,
                parameter_name=param.parameter_name,
                source_file=source_file,
                test_date=param.test_date,
            ):
                return None
            return self.store.create(
                user_id,
                parameter_name=param.parameter_name,
                value=param.value,
                unit=param.unit,
                normal_range=param.normal_range,
                status=param.status,
                test_date=param.test_date,
                source_file=source_file,
                extracted_at=datetime.now(timezone.utc),
            )
        except DuplicateParameterError:
            raise
        except Exception as exc:
            raise InsertionError(str(exc)) from exc


__all__ = ["IngestionResult", "ParameterIngestionService"]
