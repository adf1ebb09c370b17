# tests/conftest.py
# ---------------------------------------------------------------------
# - One app per test on its own SQLite file (threads need a real file)
# - LOGIN_DISABLED via TestingConfig, so API tests need no session
# - Service tests run inside the app context pushed by `app`
# ---------------------------------------------------------------------

import pytest

from accountant import create_app, db
from accountant.config import TestingConfig
from accountant.ledger import purchases


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.sqlite3'}"
        BACKUP_DIR = str(tmp_path / "backups")

    app = create_app(Config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_lot(app):
    """Create a purchase lot; extra keyword arguments override defaults."""
    def _make_lot(name="Rice 25kg", pcs=10, unit_price=10, date="2024-01-01", **extra):
        payload = {"date": date, "name": name, "pcs": pcs, "unit_price": unit_price}
        payload.update(extra)
        return purchases.create_purchase(payload)
    return _make_lot


@pytest.fixture
def sale_payload():
    def _sale_payload(name="Rice 25kg", pcs=1, unit_price=15, date="2024-01-02", **extra):
        payload = {"date": date, "name": name, "pcs": pcs, "unit_price": unit_price}
        payload.update(extra)
        return payload
    return _sale_payload
