from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query

from labdash.models.lab_parameter import LabParameter
from labdash.services.errors import DuplicateParameterError
from labdash.services.ingestion import ParameterIngestionService
from labdash.services.parameter_store import LabParameterStore

USER = "user-1"


def _param(name="Hemoglobin", value="13.5", test_date="2024-01-15", unit="g/dL", source="cbc.pdf", **extra):
    p = {
        "parameterName": name,
        "value": value,
        "unit": unit,
        "normalRange": "13-17",
        "status": "Normal",
        "testDate": test_date,
        "sourceFile": source,
    }
    p.update(extra)
    return p


def _service(db):
    return ParameterIngestionService(LabParameterStore(db))


def _count(db, user_id=USER):
    return db.query(LabParameter).filter(LabParameter.user_id == user_id).count()


def test_first_ingest_adds_everything(db):
    result = _service(db).ingest(USER, [_param(), _param(name="Platelet Count", value="250", unit="10^3/uL")])
    assert result.counts() == {"added": 2, "skipped": 0, "errors": 0}
    assert [p.parameter_name for p in result.parameters] == ["Hemoglobin", "Platelet Count"]
    assert result.parameters[0].extracted_at is not None
    assert _count(db) == 2


def test_primary_duplicate_is_skipped(db):
    service = _service(db)
    service.ingest(USER, [_param()])
    again = service.ingest(USER, [_param(source="other-file.pdf")])
    assert again.counts() == {"added": 0, "skipped": 1, "errors": 0}
    assert _count(db) == 1


def test_same_record_twice_in_one_batch(db):
    result = _service(db).ingest(USER, [_param(), _param()])
    assert result.counts() == {"added": 1, "skipped": 1, "errors": 0}
    assert _count(db) == 1


def test_secondary_duplicate_catches_reformatted_value(db):
    service = _service(db)
    service.ingest(USER, [_param(value="13.5")])
    again = service.ingest(USER, [_param(value="13.50")])
    assert again.counts() == {"added": 0, "skipped": 1, "errors": 0}
    stored = db.query(LabParameter).filter(LabParameter.user_id == USER).one()
    assert stored.value == "13.5"


def test_missing_source_file_defaults_to_unknown(db):
    service = _service(db)
    first = service.ingest(USER, [_param(source=None)])
    assert first.parameters[0].source_file == "Unknown"
    # Same name and date from an unnamed source counts as the same file
    again = service.ingest(USER, [_param(value="14.0", source=None)])
    assert again.counts() == {"added": 0, "skipped": 1, "errors": 0}


def test_different_date_or_user_is_new(db):
    service = _service(db)
    service.ingest(USER, [_param()])
    assert service.ingest(USER, [_param(test_date="2024-02-15")]).added == 1
    assert service.ingest("user-2", [_param()]).added == 1
    assert _count(db) == 2
    assert _count(db, "user-2") == 1


def test_invalid_records_are_counted_not_raised(db):
    result = _service(db).ingest(USER, [
        _param(name=""),
        _param(status="Critical"),
        _param(test_date="15/01/2024"),
        _param(unit="   "),
        "not a record",
        _param(name="Ferritin", value="80", unit="ng/mL", status="high"),
    ])
    assert result.counts() == {"added": 1, "skipped": 0, "errors": 5}
    assert result.parameters[0].status == "High"


class FlakyStore(LabParameterStore):
    """Fails to create the parameter named ``fail_on``."""

    def __init__(self, db, fail_on, error):
        super().__init__(db)
        self.fail_on = fail_on
        self.error = error

    def create(self, user_id, **fields):
        if fields["parameter_name"] == self.fail_on:
            raise self.error
        return super().create(user_id, **fields)


def test_batch_partial_success(db):
    names = ["Hemoglobin", "Platelet Count", "Hematocrit", "Serum Iron", "Ferritin"]
    store = FlakyStore(db, "Hematocrit", OperationalError("INSERT", {}, Exception("disk I/O error")))
    result = ParameterIngestionService(store).ingest(USER, [_param(name=n) for n in names])
    assert result.counts() == {"added": 4, "skipped": 0, "errors": 1}
    assert _count(db) == 4


def test_unique_violation_on_insert_counts_as_skip(db):
    store = FlakyStore(db, "Hemoglobin", DuplicateParameterError("race"))
    result = ParameterIngestionService(store).ingest(USER, [_param()])
    assert result.counts() == {"added": 0, "skipped": 1, "errors": 0}


def test_store_maps_constraint_violation(db):
    store = LabParameterStore(db)
    fields = dict(parameter_name="Hemoglobin", value="13.5", unit="g/dL", normal_range="13-17",
                  status="Normal", test_date="2024-01-15", source_file="a.pdf")
    store.create(USER, **fields)
    try:
        store.create(USER, **{**fields, "source_file": "b.pdf"})
    except DuplicateParameterError:
        pass
    else:
        raise AssertionError("expected DuplicateParameterError")
    # session is usable again after the rollback
    assert store.find_one(USER, parameter_name="Hemoglobin") is not None


def test_existing_rows_are_never_modified(db):
    service = _service(db)
    service.ingest(USER, [_param(value="13.5", status="Normal")])
    service.ingest(USER, [_param(value="13.5", status="Low", normalRange="14-18")])
    stored = db.query(LabParameter).filter(LabParameter.user_id == USER).one()
    assert stored.status == "Normal"
    assert stored.normal_range == "13-17"


def test_failed_lookup_rolls_back_and_batch_continues(db, monkeypatch):
    real_first = Query.first
    real_rollback = db.rollback
    calls = {"first": 0, "rollback": 0}

    def first_fails_once(query):
        calls["first"] += 1
        if calls["first"] == 1:
            raise OperationalError("SELECT", {}, Exception("server closed the connection"))
        return real_first(query)

    def counting_rollback():
        calls["rollback"] += 1
        real_rollback()

    monkeypatch.setattr(Query, "first", first_fails_once)
    monkeypatch.setattr(db, "rollback", counting_rollback)

    result = _service(db).ingest(USER, [_param(name="Hemoglobin"), _param(name="Platelet Count", value="250")])
    assert result.counts() == {"added": 1, "skipped": 0, "errors": 1}
    assert calls["rollback"] == 1
    assert [p.parameter_name for p in result.parameters] == ["Platelet Count"]
