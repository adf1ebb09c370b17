import json

import sqlalchemy as sa

from accountant import db
from accountant.models import Currency, StoreConfiguration


def test_init_db(app):
    result = app.test_cli_runner().invoke(args=["setup", "init-db"])

    assert result.exit_code == 0
    assert "Initialized the database." in result.output


def test_seed_defaults(app):
    result = app.test_cli_runner().invoke(args=["setup", "seed-defaults"])

    assert result.exit_code == 0
    db.session.expire_all()
    assert db.session.get(StoreConfiguration, 1) is not None
    fcfa = db.session.execute(sa.select(Currency).filter_by(code="FCFA")).scalar_one()
    assert fcfa.is_default is True


def test_create_admin(app):
    runner = app.test_cli_runner()

    assert "created" in runner.invoke(args=["setup", "create-admin"]).output
    assert "already exists" in runner.invoke(args=["setup", "create-admin"]).output


def test_backup_and_restore(app, make_lot, tmp_path):
    make_lot(pcs=3)
    target = tmp_path / "backup.json"
    runner = app.test_cli_runner()

    result = runner.invoke(args=["setup", "backup", "--output", str(target)])
    assert result.exit_code == 0
    assert len(json.loads(target.read_text())["tables"]["purchases"]) == 1

    result = runner.invoke(args=["setup", "restore", str(target)])
    assert result.exit_code == 0
    assert "purchases: 1 rows" in result.output


def test_backup_defaults_to_backup_dir(app):
    result = app.test_cli_runner().invoke(args=["setup", "backup"])

    assert result.exit_code == 0
    assert app.config["BACKUP_DIR"] in result.output


def test_restore_rejects_bad_document(app, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"version": "1.0.0"}))

    result = app.test_cli_runner().invoke(args=["setup", "restore", str(bad)])

    assert result.exit_code != 0
    assert "Invalid backup file format" in result.output
