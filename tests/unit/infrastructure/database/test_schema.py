"""Schema bootstrap - idempotent, case-insensitive table detection"""

from unittest.mock import Mock, patch

import pytest
from sqlalchemy import create_engine, inspect, text

from result_store.domain.exceptions import SchemaError
from result_store.infrastructure.database.schema import ensure_schema, has_results_table


class TestEnsureSchema:
    @pytest.fixture
    def connection(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'schema.db'}")
        connection = engine.connect()
        yield connection
        connection.close()
        engine.dispose()

    def test_creates_results_table(self, connection):
        ensure_schema(connection)

        columns = {c["name"] for c in inspect(connection).get_columns("results")}
        assert columns == {
            "request_id",
            "request_date",
            "response_type",
            "response",
            "response_mimetype",
        }

    def test_running_twice_keeps_one_table(self, connection):
        ensure_schema(connection)
        ensure_schema(connection)

        names = [n for n in inspect(connection).get_table_names() if n.lower() == "results"]
        assert names == ["results"]

    def test_existing_upper_case_table_is_detected(self, connection):
        connection.execute(text("CREATE TABLE RESULTS (REQUEST_ID VARCHAR(100) PRIMARY KEY)"))
        connection.commit()

        assert has_results_table(connection)
        ensure_schema(connection)

    def test_table_still_missing_after_create_is_fatal(self, connection):
        fake_table = Mock()
        with patch("result_store.infrastructure.database.schema.results_table", fake_table):
            with pytest.raises(SchemaError):
                ensure_schema(connection)

        fake_table.create.assert_called_once()
