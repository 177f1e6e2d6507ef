"""Kegs blueprint (JSON API)."""
from flask import Blueprint, jsonify, request
from brewhouse.database import get_session
from brewhouse.services import keg_service
from brewhouse.utils.http import json_body

kegs_bp = Blueprint('kegs', __name__, url_prefix='/api/kegs')


@kegs_bp.route('', methods=['GET'])
def list_kegs():
    """Filters: ?status=Filled&customerId=&productId="""
    return jsonify(keg_service.list_kegs(
        get_session(),
        status=request.args.get('status'),
        customer_id=request.args.get('customerId', type=int),
        product_id=request.args.get('productId', type=int),
    ))


@kegs_bp.route('', methods=['POST'])
def register_keg():
    return jsonify(keg_service.register_keg(get_session(), json_body()))


@kegs_bp.route('/<string:code>', methods=['GET'])
def get_keg(code: str):
    return jsonify(keg_service.get_keg_by_code(get_session(), code).to_dict())


@kegs_bp.route('/<int:keg_id>', methods=['PATCH'])
def update_keg(keg_id: int):
    return jsonify(keg_service.update_keg(get_session(), keg_id, json_body()))


@kegs_bp.route('/<int:keg_id>/transactions', methods=['GET'])
def keg_transactions(keg_id: int):
    return jsonify(keg_service.list_keg_transactions(get_session(), keg_id))
