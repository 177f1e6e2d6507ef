"""
Tests for the Flask CLI commands.
"""

from brewhouse.models import Keg, Product, SystemSetting, KEG_DEPOSIT_PRICE_KEY


def test_seed_demo_is_idempotent(app, session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['seed-demo'])
    assert result.exit_code == 0
    assert 'Demo data loaded.' in result.output

    assert session.query(Product).count() == 2
    assert session.query(Keg).count() == 5
    assert session.query(SystemSetting).filter(SystemSetting.key == KEG_DEPOSIT_PRICE_KEY).one().value == '30.00'

    again = runner.invoke(args=['seed-demo'])
    assert again.exit_code == 0
    assert 'already present' in again.output
    assert session.query(Keg).count() == 5


def test_set_setting(app, session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['set-setting', KEG_DEPOSIT_PRICE_KEY, '$42'])
    assert result.exit_code == 0
    assert 'keg_deposit_price = 42.00' in result.output

    bad = runner.invoke(args=['set-setting', KEG_DEPOSIT_PRICE_KEY, 'free'])
    assert bad.exit_code == 1
    assert 'Error:' in bad.output
