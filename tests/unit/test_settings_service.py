"""
Unit tests for system settings.
"""

import pytest
from decimal import Decimal
from brewhouse.exceptions import ConfigMissingError, NotFoundError, ValidationError
from brewhouse.models import SystemSetting, KEG_DEPOSIT_PRICE_KEY
from brewhouse.services import settings_service


class TestKegDepositPrice:
    """Tests for the keg_deposit_price setting."""

    def test_missing_setting(self, session):
        with pytest.raises(ConfigMissingError):
            settings_service.get_keg_deposit_price(session)
        assert settings_service.get_keg_deposit_price_display(session) == '0.00'

    def test_configured(self, session, deposit_price):
        assert settings_service.get_keg_deposit_price(session) == Decimal('30.00')
        assert settings_service.get_keg_deposit_price_display(session) == '30.00'

    def test_unparseable_value(self, session):
        session.add(SystemSetting(key=KEG_DEPOSIT_PRICE_KEY, value='thirty'))
        session.commit()
        with pytest.raises(ConfigMissingError):
            settings_service.get_keg_deposit_price(session)


class TestSetSetting:
    """Tests for set_setting."""

    def test_creates_then_updates(self, session):
        assert settings_service.set_setting(session, 'invoice_email_body', 'Thanks!') == {
            'key': 'invoice_email_body', 'value': 'Thanks!'
        }
        settings_service.set_setting(session, 'invoice_email_body', 'Cheers!')

        assert settings_service.get_setting(session, 'invoice_email_body') == 'Cheers!'
        assert session.query(SystemSetting).count() == 1

    def test_deposit_price_is_normalized(self, session):
        setting = settings_service.set_setting(session, KEG_DEPOSIT_PRICE_KEY, '$25')
        assert setting['value'] == '25.00'

    @pytest.mark.parametrize('value', ['-5', 'abc', ''])
    def test_invalid_deposit_price(self, session, value):
        with pytest.raises(ValidationError):
            settings_service.set_setting(session, KEG_DEPOSIT_PRICE_KEY, value)

    def test_get_setting_or_404(self, session, deposit_price):
        assert settings_service.get_setting_or_404(session, KEG_DEPOSIT_PRICE_KEY)['value'] == '30.00'
        with pytest.raises(NotFoundError):
            settings_service.get_setting_or_404(session, 'unknown')

    def test_list_settings_sorted(self, session, deposit_price):
        settings_service.set_setting(session, 'invoice_email_body', 'Hello')
        assert [s['key'] for s in settings_service.list_settings(session)] == [
            'invoice_email_body', KEG_DEPOSIT_PRICE_KEY
        ]
