# tests/architecture/test_architecture.py
# Architecture tests enforcing layering rules.
# - domain must not import the db layer, the repositories or any driver
# - repositories reach the database only through the query executor
# - the executor never imports a driver; only the connection modules do

import ast
import pathlib

import pytest  # type: ignore[import-not-found]

REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]
PACKAGE = REPO_ROOT / "wishwall"

DRIVERS = {"asyncpg", "aiomysql", "aiosqlite", "sqlite3", "pymysql", "psycopg2", "sqlalchemy"}


def _iter_py_files(root: pathlib.Path):
    for path in root.rglob("*.py"):
        if "__pycache__" in path.parts:
            continue
        yield path


def _collect_imports(py_path: pathlib.Path) -> set[str]:
    """Return the full dotted names of every module imported by the file."""
    tree = ast.parse(py_path.read_text(encoding="utf-8"), filename=str(py_path))
    imports: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            imports.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            imports.add(node.module)
    return imports


def _top_levels(imports: set[str]) -> set[str]:
    return {name.split(".")[0] for name in imports}


def _offenders(root: pathlib.Path, forbidden_prefixes: tuple[str, ...], forbidden_tops: set[str]):
    offenders = []
    for f in _iter_py_files(root):
        imports = _collect_imports(f)
        bad = {i for i in imports if i.startswith(forbidden_prefixes)} | (_top_levels(imports) & forbidden_tops)
        if bad:
            offenders.append(f"{f.relative_to(REPO_ROOT)}: {sorted(bad)}")
    return offenders


# ---------- Tests ----------

@pytest.mark.architecture
def test_domain_does_not_import_infrastructure():
    offenders = _offenders(
        PACKAGE / "domain",
        ("wishwall.db", "wishwall.repositories", "wishwall.observability"),
        DRIVERS,
    )
    assert not offenders, "domain must stay persistence-free:\n" + "\n".join(offenders)


@pytest.mark.architecture
def test_repositories_only_use_the_executor():
    offenders = _offenders(
        PACKAGE / "repositories",
        ("wishwall.db.postgres", "wishwall.db.mysql", "wishwall.db.sqlite", "wishwall.db.schema"),
        DRIVERS,
    )
    assert not offenders, "repositories must go through QueryExecutor:\n" + "\n".join(offenders)


@pytest.mark.architecture
def test_query_builder_is_driver_free():
    offenders = _offenders(PACKAGE / "db" / "query", ("wishwall.repositories",), DRIVERS)
    assert not offenders, "query builder must not touch drivers:\n" + "\n".join(offenders)


@pytest.mark.architecture
def test_single_executor_class():
    tree = ast.parse((PACKAGE / "db" / "query" / "executor.py").read_text(encoding="utf-8"))
    executors = [n.name for n in ast.walk(tree) if isinstance(n, ast.ClassDef) and n.name.endswith("Executor")]
    assert executors == ["QueryExecutor"]
