# tests/unit/test_query_executor.py
# SQL shape and parameter order produced by the shared executor.

import pytest

from fakes import affected, rows
from wishwall.db.query.executor import Join, JoinQueryConfig, OrderBy, SelectOptions
from wishwall.db.query.placeholders import Dialect
from wishwall.errors import QueryRejectedError


class TestInsert:

    @pytest.mark.asyncio
    async def test_postgres_insert(self, make_executor):
        conn, executor = make_executor(Dialect.POSTGRES)
        await executor.insert("wishes", {"id": "w1", "wish": "peace"})
        assert conn.calls == [("INSERT INTO wishes (id, wish) VALUES ($1, $2)", ["w1", "peace"])]

    @pytest.mark.asyncio
    async def test_returning_only_where_supported(self, make_executor):
        pg_conn, pg = make_executor(Dialect.POSTGRES)
        lite_conn, lite = make_executor(Dialect.SQLITE)
        await pg.insert("users", {"google_id": "g"}, returning=True)
        await lite.insert("users", {"google_id": "g"}, returning=True)
        assert pg_conn.sqls[0].endswith(" RETURNING *")
        assert lite_conn.sqls[0] == "INSERT INTO users (google_id) VALUES (?)"

    @pytest.mark.asyncio
    async def test_empty_data_rejected(self, make_executor):
        conn, executor = make_executor()
        with pytest.raises(QueryRejectedError):
            await executor.insert("wishes", {})
        assert conn.calls == []


class TestSelect:

    @pytest.mark.asyncio
    async def test_full_options_param_order(self, make_executor):
        conn, executor = make_executor(Dialect.POSTGRES)
        await executor.select("wishes", SelectOptions(
            where={"user_id": 7},
            order_by=[OrderBy("created_at", "DESC")],
            limit=10,
            offset=20,
        ))
        assert conn.calls == [(
            "SELECT * FROM wishes WHERE user_id = $1 ORDER BY created_at DESC LIMIT $2 OFFSET $3",
            [7, 10, 20],
        )]

    @pytest.mark.asyncio
    async def test_columns_and_dict_options(self, make_executor):
        conn, executor = make_executor(Dialect.MYSQL)
        await executor.select("sessions", {"where": {"session_id": "s"}, "columns": ["wish_id"]})
        assert conn.calls == [("SELECT wish_id FROM sessions WHERE session_id = ?", ["s"])]

    @pytest.mark.asyncio
    async def test_no_options(self, make_executor):
        conn, executor = make_executor()
        await executor.select("users")
        assert conn.calls == [("SELECT * FROM users", [])]

    @pytest.mark.asyncio
    async def test_bad_direction_rejected(self, make_executor):
        conn, executor = make_executor()
        with pytest.raises(QueryRejectedError):
            await executor.select("wishes", SelectOptions(order_by=[("created_at", "sideways")]))
        assert conn.calls == []

    @pytest.mark.asyncio
    async def test_returns_rows(self, make_executor):
        conn, executor = make_executor(Dialect.SQLITE, rows({"id": "w1"}, {"id": "w2"}))
        result = await executor.select("wishes")
        assert [r["id"] for r in result.rows] == ["w1", "w2"]


class TestUpdateDelete:

    @pytest.mark.asyncio
    async def test_set_before_where(self, make_executor):
        conn, executor = make_executor(Dialect.POSTGRES, affected(1))
        result = await executor.update("wishes", {"name": "A", "wish": "B"}, {"id": "w1"})
        assert conn.calls == [("UPDATE wishes SET name = $1, wish = $2 WHERE id = $3", ["A", "B", "w1"])]
        assert result.row_count == 1

    @pytest.mark.asyncio
    async def test_update_without_conditions_rejected(self, make_executor):
        conn, executor = make_executor()
        with pytest.raises(QueryRejectedError):
            await executor.update("wishes", {"name": "A"}, {})
        assert conn.calls == []

    @pytest.mark.asyncio
    async def test_delete(self, make_executor):
        conn, executor = make_executor(Dialect.SQLITE)
        await executor.delete("supports", {"wish_id": "w1", "user_id": 3})
        assert conn.calls == [("DELETE FROM supports WHERE wish_id = ? AND user_id = ?", ["w1", 3])]

    @pytest.mark.asyncio
    async def test_delete_without_conditions_rejected(self, make_executor):
        conn, executor = make_executor()
        with pytest.raises(QueryRejectedError):
            await executor.delete("supports", {})
        assert conn.calls == []


class TestUpsert:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("dialect,expected", [
        (Dialect.POSTGRES,
         "INSERT INTO wishes (id, name, created_at) VALUES ($1, $2, $3) "
         "ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name"),
        (Dialect.SQLITE,
         "INSERT INTO wishes (id, name, created_at) VALUES (?, ?, ?) "
         "ON CONFLICT (id) DO UPDATE SET name = excluded.name"),
        (Dialect.MYSQL,
         "INSERT INTO wishes (id, name, created_at) VALUES (?, ?, ?) "
         "ON DUPLICATE KEY UPDATE name = VALUES(name)"),
    ])
    async def test_created_at_is_insert_only(self, make_executor, dialect, expected):
        conn, executor = make_executor(dialect)
        await executor.upsert("wishes", {"id": "w1", "name": "A", "created_at": "t"}, ["id"])
        assert conn.calls == [(expected, ["w1", "A", "t"])]
        assert "created_at =" not in conn.sqls[0]

    @pytest.mark.asyncio
    async def test_mysql(self, make_executor):
        conn, executor = make_executor(Dialect.MYSQL)
        await executor.upsert("wishes", {"id": "w1", "name": "A"}, ["id"])
        assert conn.sqls == [
            "INSERT INTO wishes (id, name) VALUES (?, ?) ON DUPLICATE KEY UPDATE name = VALUES(name)"
        ]

    @pytest.mark.asyncio
    async def test_only_conflict_columns_means_do_nothing(self, make_executor):
        conn, executor = make_executor(Dialect.SQLITE)
        await executor.upsert("sessions", {"session_id": "s"}, ["session_id"])
        assert conn.sqls == [
            "INSERT INTO sessions (session_id) VALUES (?) ON CONFLICT (session_id) DO NOTHING"
        ]


class TestSelectWithJoin:

    @pytest.mark.asyncio
    async def test_clause_order_and_params(self, make_executor):
        conn, executor = make_executor(Dialect.POSTGRES)
        await executor.select_with_join(JoinQueryConfig(
            main_table="wishes w",
            select=["w.id", "COUNT(s.id) AS n"],
            joins=[Join("supports s", "w.id = s.wish_id", "LEFT")],
            where={"w.user_id": 7},
            group_by=["w.id"],
            having={"COUNT(s.id)": 2},
            order_by=[OrderBy("w.created_at", "DESC")],
            limit=5,
            offset=0,
        ))
        assert conn.calls == [(
            "SELECT w.id, COUNT(s.id) AS n FROM wishes w "
            "LEFT JOIN supports s ON w.id = s.wish_id "
            "WHERE w.user_id = $1 GROUP BY w.id HAVING COUNT(s.id) = $2 "
            "ORDER BY w.created_at DESC LIMIT $3 OFFSET $4",
            [7, 2, 5, 0],
        )]


class TestSupportCount:

    @pytest.mark.asyncio
    async def test_increment(self, make_executor):
        conn, executor = make_executor(Dialect.POSTGRES)
        await executor.increment_support_count("w1")
        assert conn.calls == [
            ("UPDATE wishes SET support_count = support_count + 1 WHERE id = $1", ["w1"])
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("dialect,fn", [
        (Dialect.POSTGRES, "GREATEST"),
        (Dialect.MYSQL, "GREATEST"),
        (Dialect.SQLITE, "MAX"),
    ])
    async def test_decrement_clamps_with_dialect_max(self, make_executor, dialect, fn):
        conn, executor = make_executor(dialect)
        await executor.decrement_support_count("w1")
        assert f"support_count = {fn}(support_count - 1, 0)" in conn.sqls[0]

    @pytest.mark.asyncio
    async def test_recount_postgres_reuses_parameter(self, make_executor):
        conn, executor = make_executor(Dialect.POSTGRES)
        await executor.update_support_count("w1")
        assert conn.calls == [(
            "UPDATE wishes SET support_count = (SELECT COUNT(*) FROM supports WHERE wish_id = $1) "
            "WHERE id = $1",
            ["w1"],
        )]

    @pytest.mark.asyncio
    async def test_recount_positional_repeats_parameter(self, make_executor):
        conn, executor = make_executor(Dialect.SQLITE)
        await executor.update_support_count("w1")
        assert conn.calls[0][1] == ["w1", "w1"]


class TestRawAndErrors:

    @pytest.mark.asyncio
    async def test_raw_passthrough(self, make_executor):
        conn, executor = make_executor(Dialect.SQLITE, rows({"n": 1}))
        result = await executor.raw("SELECT 1 AS n")
        assert conn.calls == [("SELECT 1 AS n", [])]
        assert result.rows == [{"n": 1}]

    @pytest.mark.asyncio
    async def test_empty_raw_rejected_before_driver(self, make_executor):
        conn, executor = make_executor()
        with pytest.raises(QueryRejectedError):
            await executor.raw("   ")
        assert conn.calls == []

    @pytest.mark.asyncio
    async def test_driver_error_propagates_unchanged(self, make_executor):
        boom = ConnectionResetError("connection lost")
        conn, executor = make_executor(Dialect.POSTGRES, boom)
        with pytest.raises(ConnectionResetError) as exc:
            await executor.raw("SELECT 1")
        assert exc.value is boom

    def test_placeholders_helper(self, make_executor):
        _, pg = make_executor(Dialect.POSTGRES)
        _, lite = make_executor(Dialect.SQLITE)
        assert pg.placeholders(3, 3) == ["$3", "$4", "$5"]
        assert lite.placeholders(1, 2) == ["?", "?"]
        assert pg.dialect_name == "PostgreSQL"
