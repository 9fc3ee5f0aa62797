import os

os.environ["DB_URL"] = "sqlite://"

from datetime import date

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from valtrack.api.dependencies import get_db_connection, get_storage
from valtrack.database import DatabaseManager
from valtrack.main import app
from valtrack.services.area_service import AreaService
from valtrack.services.branch_service import BranchService
from valtrack.services.patron_service import PatronService
from valtrack.services.storage_service import StorageService


@pytest.fixture
def manager():
    db = DatabaseManager("sqlite://")
    db.create_schema()
    yield db
    db.engine.dispose()


@pytest.fixture
def conn(manager):
    with manager.get_connection() as connection:
        yield connection


class MemoryS3:
    """In-memory stand-in for the boto3 S3 client calls StorageService makes."""

    def __init__(self):
        self.objects = {}
        self.fail_uploads = False

    def head_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {"ContentLength": len(self.objects[(Bucket, Key)])}

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail_uploads:
            raise ClientError({"Error": {"Code": "500", "Message": "Internal Error"}}, "PutObject")
        self.objects[(Bucket, Key)] = Body
        return {}


@pytest.fixture
def s3():
    return MemoryS3()


@pytest.fixture
def storage(s3):
    return StorageService(s3, "http://testserver/storage")


@pytest.fixture
def client(manager, storage):
    def override_db():
        with manager.get_connection() as connection:
            yield connection

    app.dependency_overrides[get_db_connection] = override_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_area(conn):
    """Factory: branch (with its default floor) plus one area."""
    branches = BranchService()
    areas = AreaService()

    def _make(branch_name="Main Library", area_name="Reading Room", capacity=2):
        existing = [b for b in branches.list_branches(conn) if b["name"] == branch_name]
        branch = existing[0] if existing else branches.create_branch(conn, branch_name, "Admin")
        floor = branches.list_floors(conn, branch["id"])[0]
        area = areas.create_area(conn, floor["id"], area_name, None, capacity, "Admin")
        return area

    return _make


@pytest.fixture
def make_patron(conn):
    patrons = PatronService()
    counter = {"n": 0}

    def _make(firstname="Juan", surname="Dela Cruz", library_id=None, **extra):
        counter["n"] += 1
        data = {
            "library_id": library_id or f"LIB-{counter['n']:03d}",
            "surname": surname,
            "firstname": firstname,
            "dateofbirth": date(2000, 1, 15),
            "email": f"patron{counter['n']}@example.com",
        }
        data.update(extra)
        return patrons.create_patron(conn, data, "Admin")

    return _make
