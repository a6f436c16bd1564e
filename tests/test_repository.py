"""
Tests for the intake repositories (in-memory and SQLAlchemy on SQLite).
"""
import threading

import pytest
from fastapi.testclient import TestClient

from clinic_intake.collaborators import Collaborators
from clinic_intake.config import Settings
from clinic_intake.database import create_db_engine
from clinic_intake.main import create_app
from clinic_intake.storage.repository import InMemoryIntakeRepository, SQLAlchemyIntakeRepository

from conftest import VALID_INTAKE, bearer


@pytest.fixture(scope="function")
def sql_repository():
    """
    Create a fresh in-memory SQLite repository for each test.
    """
    engine = create_db_engine("sqlite:///:memory:")
    repository = SQLAlchemyIntakeRepository(engine, table_name="intake_test")
    repository.initialize()
    yield repository
    repository.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def any_repository(request, sql_repository):
    if request.param == "memory":
        return InMemoryIntakeRepository()
    return sql_repository


def test_upsert_and_get(any_repository):
    item = {"patientId": "p1", "createdAt": "2024-01-01T00:00:00Z", "fullName": "Jane"}
    any_repository.upsert("p1", item)
    assert any_repository.get("p1") == item
    assert any_repository.get("missing") is None


def test_upsert_is_idempotent(any_repository):
    item = {"patientId": "p1", "createdAt": "2024-01-01T00:00:00Z", "fullName": "Jane"}
    any_repository.upsert("p1", item)
    any_repository.upsert("p1", item)
    assert any_repository.scan() == [item]


def test_returned_items_are_copies(any_repository):
    any_repository.upsert("p1", {"createdAt": "2024-01-01T00:00:00Z", "tags": ["a"]})
    fetched = any_repository.get("p1")
    fetched["tags"].append("b")
    assert any_repository.get("p1")["tags"] == ["a"]


def test_update_merges_fields(any_repository):
    any_repository.upsert("p1", {"createdAt": "2024-01-01T00:00:00Z", "fullName": "Jane"})
    merged = any_repository.update("p1", {"doctorResponse": {"prescription": "Rest"}, "updatedAt": "2024-01-02T00:00:00Z"})

    assert merged["fullName"] == "Jane"
    assert merged["doctorResponse"] == {"prescription": "Rest"}
    assert any_repository.get("p1") == merged


def test_update_creates_missing_item(any_repository):
    created = any_repository.update("ghost", {"updatedAt": "2024-01-02T00:00:00Z"})
    assert created == {"patientId": "ghost", "updatedAt": "2024-01-02T00:00:00Z"}
    assert any_repository.get("ghost") == created


def test_scan_orders_by_created_at(any_repository):
    any_repository.upsert("late", {"createdAt": "2024-02-01T00:00:00Z"})
    any_repository.upsert("early", {"createdAt": "2024-01-01T00:00:00Z"})
    any_repository.update("bare", {"updatedAt": "2024-03-01T00:00:00Z"})

    assert [item["patientId"] for item in any_repository.scan()] == ["bare", "early", "late"]


def test_sql_repository_keeps_timestamp_columns(sql_repository):
    sql_repository.upsert("p1", {"createdAt": "2024-01-01T00:00:00Z"})
    sql_repository.update("p1", {"updatedAt": "2024-01-05T00:00:00Z"})

    with sql_repository.engine.connect() as connection:
        row = connection.execute(sql_repository.table.select()).one()
    assert row.created_at == "2024-01-01T00:00:00Z"
    assert row.updated_at == "2024-01-05T00:00:00Z"


@pytest.fixture(scope="function")
def file_sql_repository(tmp_path):
    """
    SQLite file database, so every thread gets its own connection.
    """
    engine = create_db_engine(f"sqlite:///{tmp_path / 'intake.db'}")
    repository = SQLAlchemyIntakeRepository(engine, table_name="intake_threads")
    repository.initialize()
    yield repository
    engine.dispose()


def run_together(workers):
    barrier = threading.Barrier(len(workers))
    errors = []

    def run(work):
        barrier.wait()
        try:
            work()
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=run, args=(work,)) for work in workers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return errors


def test_concurrent_identical_upserts_succeed(file_sql_repository):
    item = {"patientId": "p1", "createdAt": "2024-01-01T00:00:00Z", "fullName": "Jane"}

    for round_number in range(10):
        key = f"p{round_number}"
        errors = run_together([lambda key=key: file_sql_repository.upsert(key, item)] * 4)
        assert errors == []
        assert file_sql_repository.get(key) == {**item, "patientId": key}

    assert len(file_sql_repository.scan()) == 10


def test_concurrent_updates_keep_every_field(file_sql_repository):
    file_sql_repository.upsert("p1", {"createdAt": "2024-01-01T00:00:00Z"})

    errors = run_together([
        lambda n=n: file_sql_repository.update("p1", {f"field{n}": n}) for n in range(6)
    ])

    assert errors == []
    stored = file_sql_repository.get("p1")
    assert stored["createdAt"] == "2024-01-01T00:00:00Z"
    assert all(stored[f"field{n}"] == n for n in range(6))


def test_update_of_missing_item_under_concurrency(file_sql_repository):
    errors = run_together([
        lambda n=n: file_sql_repository.update("ghost", {f"field{n}": n}) for n in range(4)
    ])

    assert errors == []
    stored = file_sql_repository.get("ghost")
    assert stored["patientId"] == "ghost"
    assert all(stored[f"field{n}"] == n for n in range(4))


def test_app_creates_table_on_startup(collaborators, doctor_token):
    settings = Settings(_env_file=None, database_url="sqlite:///:memory:", intake_table_name="startup_intake")
    engine = create_db_engine(settings.database_url)
    repository = SQLAlchemyIntakeRepository(engine, table_name=settings.intake_table_name)
    collaborators = Collaborators(**{**collaborators.__dict__, "repository": repository})

    app = create_app(settings=settings, collaborators=collaborators)
    with TestClient(app, headers=bearer(doctor_token)) as client:
        patient_id = client.post("/intake", json=VALID_INTAKE).json()["patientId"]
        response = client.get(f"/patients/{patient_id}")

    assert response.status_code == 200
    assert response.json()["fullName"] == "Jane Doe"
    assert repository.get(patient_id)["patientId"] == patient_id
    engine.dispose()
