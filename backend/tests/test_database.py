"""
Database layer tests
"""
from sqlalchemy import inspect

from panelkit.database import get_db, init_db, make_engine


class TestDatabase:

    def test_init_db_creates_model_tables(self, tmp_path):
        engine = make_engine(f"sqlite:///{tmp_path / 'panel.db'}")
        init_db(engine)

        tables = inspect(engine).get_table_names()
        assert {"teams", "users", "posts", "post_categories", "products"} <= set(tables)

    def test_get_db_closes_session(self):
        generator = get_db()
        session = next(generator)

        assert session.is_active
        generator.close()
