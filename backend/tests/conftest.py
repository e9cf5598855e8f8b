import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import wims.models  # noqa: F401
from wims.api.deps_auth import get_db
from wims.core.database import Base, enable_sqlite_write_locks
from wims.core.security import create_access_token, hash_password
from wims.main import app
from wims.models.supplier import Supplier
from wims.models.user import User
from wims.services import ledger


@pytest.fixture()
def engine():
    # one shared connection, so sessions here never overlap; the concurrent
    # writer tests use file_engine instead
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'wims.db'}",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_write_locks(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _user(db, username, role):
    u = User(username=username, name=username.capitalize(), role=role, password_hash=hash_password(f"{username}123"))
    db.add(u)
    db.commit()
    return u


@pytest.fixture()
def admin(db):
    return _user(db, "admin", "admin")


@pytest.fixture()
def manager(db):
    return _user(db, "manager", "manager")


@pytest.fixture()
def viewer(db):
    return _user(db, "viewer", "viewer")


@pytest.fixture()
def supplier(db):
    s = Supplier(name="ACME Industrial")
    db.add(s)
    db.commit()
    return s


@pytest.fixture()
def assert_no_drift(db):
    """Call at the end of a test: quantity must equal the ledger sum everywhere."""

    def check():
        db.expire_all()
        assert ledger.find_drift(db) == []

    return check


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def make(user) -> dict:
        token = create_access_token({"sub": str(user.id), "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return make
