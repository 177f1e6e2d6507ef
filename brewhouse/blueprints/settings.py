"""Settings blueprint (JSON API)."""
from flask import Blueprint, jsonify, current_app
from brewhouse.database import get_session
from brewhouse.services import settings_service
from brewhouse.utils.http import json_body

settings_bp = Blueprint('settings', __name__, url_prefix='/api/settings')


@settings_bp.route('', methods=['GET'])
def list_settings():
    return jsonify(settings_service.list_settings(get_session()))


@settings_bp.route('/<string:key>', methods=['GET'])
def get_setting(key: str):
    return jsonify(settings_service.get_setting_or_404(get_session(), key))


@settings_bp.route('/<string:key>', methods=['PUT'])
def put_setting(key: str):
    """Create or update a setting: {value}."""
    setting = settings_service.set_setting(get_session(), key, json_body().get('value'))
    current_app.logger.info(f"Setting {key} changed via API")
    return jsonify(setting)
