"""Customers blueprint (JSON API)."""
from flask import Blueprint, jsonify, request
from brewhouse.database import get_session
from brewhouse.services import customer_service
from brewhouse.utils.http import json_body

customers_bp = Blueprint('customers', __name__, url_prefix='/api/customers')


@customers_bp.route('', methods=['GET'])
def list_customers():
    """Enabled customers; ?all=1 includes disabled ones."""
    include_disabled = request.args.get('all') in ('1', 'true')
    return jsonify(customer_service.list_customers(get_session(), include_disabled))


@customers_bp.route('', methods=['POST'])
def create_customer():
    return jsonify(customer_service.create_customer(get_session(), json_body()))


@customers_bp.route('/<int:customer_id>', methods=['GET'])
def get_customer(customer_id: int):
    return jsonify(customer_service.get_customer(get_session(), customer_id).to_dict())


@customers_bp.route('/<int:customer_id>', methods=['PATCH'])
def update_customer(customer_id: int):
    return jsonify(customer_service.update_customer(get_session(), customer_id, json_body()))


@customers_bp.route('/<int:customer_id>', methods=['DELETE'])
def disable_customer(customer_id: int):
    return jsonify(customer_service.disable_customer(get_session(), customer_id))
