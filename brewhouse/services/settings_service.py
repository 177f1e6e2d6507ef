"""System settings service (key/value configuration stored in the database)."""
import logging
from decimal import Decimal
from typing import Optional, List, Dict
from sqlalchemy.exc import SQLAlchemyError
from brewhouse.models import SystemSetting, KEG_DEPOSIT_PRICE_KEY
from brewhouse.exceptions import ConfigMissingError, DatabaseError, NotFoundError, ValidationError, ErrorKind
from brewhouse.utils.number_format import parse_money, format_money

logger = logging.getLogger(__name__)

# Shown on orders when the deposit price has never been configured
UNSET_KEG_DEPOSIT_PRICE = '0.00'


def get_setting(session, key: str, default: Optional[str] = None) -> Optional[str]:
    """Return the raw value of a setting, or default when absent."""
    setting = session.query(SystemSetting).filter(SystemSetting.key == key).first()
    return setting.value if setting else default


def get_keg_deposit_price(session) -> Decimal:
    """
    Current per-unit keg deposit.

    Raises:
        ConfigMissingError: if the setting is missing or not a valid amount.
    """
    raw = get_setting(session, KEG_DEPOSIT_PRICE_KEY)
    if raw is None:
        logger.error("Keg deposit price not set in system_settings")
        raise ConfigMissingError('Keg deposit price not configured')
    try:
        return parse_money(raw)
    except ValueError:
        logger.error(f"Keg deposit price setting is not a valid amount: {raw!r}")
        raise ConfigMissingError(f'Keg deposit price is not a valid amount: {raw}')


def get_keg_deposit_price_display(session) -> str:
    """Deposit price as attached to order payloads ("0.00" when unset)."""
    return get_setting(session, KEG_DEPOSIT_PRICE_KEY, UNSET_KEG_DEPOSIT_PRICE)


def list_settings(session) -> List[Dict[str, str]]:
    return [s.to_dict() for s in session.query(SystemSetting).order_by(SystemSetting.key).all()]


def get_setting_or_404(session, key: str) -> Dict[str, str]:
    setting = session.query(SystemSetting).filter(SystemSetting.key == key).first()
    if not setting:
        raise NotFoundError(f'Setting {key} not found')
    return setting.to_dict()


def set_setting(session, key: str, value) -> Dict[str, str]:
    """Create or update a setting and commit."""
    key = (key or '').strip()
    if not key:
        raise ValidationError.single(ErrorKind.INVALID_ITEM, 'Setting key is required')
    if value is None or str(value).strip() == '':
        raise ValidationError.single(ErrorKind.INVALID_ITEM, f'A value is required for setting {key}')

    value = str(value).strip()
    if key == KEG_DEPOSIT_PRICE_KEY:
        try:
            value = format_money(parse_money(value))
        except ValueError as e:
            raise ValidationError.single(ErrorKind.INVALID_ITEM, f'Invalid keg deposit price: {e}')

    try:
        setting = session.query(SystemSetting).filter(SystemSetting.key == key).first()
        if setting:
            setting.value = value
        else:
            setting = SystemSetting(key=key, value=value)
            session.add(setting)
        session.commit()
        logger.info(f"Setting {key} updated")
        return setting.to_dict()

    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error saving setting {key}")
        raise DatabaseError(str(e))
