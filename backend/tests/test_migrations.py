from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def test_upgrade_and_downgrade(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrations.db'}"
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("sqlalchemy.url", url)

    command.upgrade(config, "head")

    engine = create_engine(url)
    inspector = inspect(engine)
    assert {"users", "tracked_products", "price_alerts"} <= set(inspector.get_table_names())
    uniques = inspector.get_unique_constraints("tracked_products")
    assert any(set(u["column_names"]) == {"user_id", "url"} for u in uniques)

    command.downgrade(config, "base")

    assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    engine.dispose()
