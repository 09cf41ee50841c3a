import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from postcrud.core.exceptions import (
    ConfigurationError,
    ConstraintError,
    DatabaseConnectionError,
    DatabaseError,
    DecodeError,
    MigrationError,
    PostCrudError,
    QueryError,
    SchemaMismatchError,
    exit_code_for,
)
from postcrud.db.repositories.decorators import handle_db_errors
from postcrud.db.utils import transactional


class FakeSession:
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


@pytest.mark.unit
def test_integrity_error_becomes_constraint_error():
    @handle_db_errors("post")
    def write(db, title):
        raise IntegrityError("INSERT INTO posts", {}, Exception("NOT NULL constraint failed: posts.title"))

    with pytest.raises(ConstraintError) as exc_info:
        write(FakeSession(), "title1")
    assert "NOT NULL" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, IntegrityError)


@pytest.mark.unit
def test_other_sqlalchemy_errors_become_database_error():
    @handle_db_errors()
    def read(db):
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    with pytest.raises(DatabaseError):
        read(FakeSession())


@pytest.mark.unit
@pytest.mark.parametrize("exc", [QueryError("bad"), DecodeError("bad"), ValueError("bad")])
def test_other_errors_pass_through(exc):
    @handle_db_errors()
    def op(db):
        raise exc

    with pytest.raises(type(exc)):
        op(FakeSession())


@pytest.mark.unit
def test_transactional_commits_on_success():
    db = FakeSession()

    @transactional
    def op(session):
        return 1

    assert op(db) == 1
    assert (db.commits, db.rollbacks) == (1, 0)


@pytest.mark.unit
def test_transactional_rolls_back_and_reraises():
    db = FakeSession()

    @transactional
    def op(session):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        op(db)
    assert (db.commits, db.rollbacks) == (0, 1)


@pytest.mark.unit
def test_transactional_needs_a_session():
    @transactional
    def op(session):
        return 1

    with pytest.raises(TypeError):
        op("not a session")


@pytest.mark.unit
def test_error_codes_and_exit_codes():
    assert str(QueryError("bad column")) == "bad column"
    assert QueryError("x").code == "query_error"
    assert SchemaMismatchError("x").code == "schema_mismatch"
    assert isinstance(SchemaMismatchError("x"), MigrationError)

    assert exit_code_for(DatabaseConnectionError("x")) == 3
    assert exit_code_for(SchemaMismatchError("x")) == exit_code_for(MigrationError("x")) == 4
    assert exit_code_for(ConfigurationError("x")) == 9
    assert exit_code_for(PostCrudError("x")) == 1
