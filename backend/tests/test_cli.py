from typer.testing import CliRunner

from sacrewards.cli import app
from sacrewards.storage.db import Database
from sacrewards.storage.sql import SqlStorage

runner = CliRunner()


def test_init_make_admin_and_stats(tmp_path):
    url = f"sqlite:///{tmp_path / 'rewards.db'}"

    result = runner.invoke(app, ["init", "--database-url", url])
    assert result.exit_code == 0, result.output

    storage = SqlStorage(Database(url))
    user = storage.create_user(
        name="Meera", email="meera@example.com", password="hashed", referral_code="ME000001"
    )
    storage.close()

    result = runner.invoke(app, ["make-admin", "meera@example.com", "--database-url", url])
    assert result.exit_code == 0, result.output

    storage = SqlStorage(Database(url))
    assert storage.get_user(user.id).is_admin is True
    storage.close()

    result = runner.invoke(app, ["stats", "--database-url", url])
    assert result.exit_code == 0, result.output
    assert "Total users" in result.output


def test_make_admin_unknown_email(tmp_path):
    url = f"sqlite:///{tmp_path / 'rewards.db'}"
    runner.invoke(app, ["init", "--database-url", url])

    result = runner.invoke(app, ["make-admin", "ghost@example.com", "--database-url", url])

    assert result.exit_code == 1
