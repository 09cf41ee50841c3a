from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class PostCrudError(Exception):
    message: str
    code: str = "error"
    details: dict | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class ConfigurationError(PostCrudError):
    code: str = "configuration_error"


@dataclass(eq=False)
class DatabaseConnectionError(PostCrudError):
    code: str = "connection_error"


@dataclass(eq=False)
class MigrationError(PostCrudError):
    code: str = "migration_error"


@dataclass(eq=False)
class SchemaMismatchError(MigrationError):
    code: str = "schema_mismatch"


@dataclass(eq=False)
class DecodeError(PostCrudError):
    code: str = "decode_error"


@dataclass(eq=False)
class ConstraintError(PostCrudError):
    code: str = "constraint_error"


@dataclass(eq=False)
class QueryError(PostCrudError):
    code: str = "query_error"


@dataclass(eq=False)
class DatabaseError(PostCrudError):
    code: str = "database_error"


EXC_TO_EXIT_CODE: dict[type[PostCrudError], int] = {
    DatabaseConnectionError: 3,
    MigrationError: 4,
    DecodeError: 5,
    ConstraintError: 6,
    QueryError: 7,
    DatabaseError: 8,
    ConfigurationError: 9,
}


def exit_code_for(exc: PostCrudError) -> int:
    for typ, code in EXC_TO_EXIT_CODE.items():
        if isinstance(exc, typ):
            return code
    return 1
