"""Inventory blueprint (JSON API): stock on hand and its ledger."""
from flask import Blueprint, jsonify, request
from brewhouse.database import get_session
from brewhouse.services import inventory_service
from brewhouse.utils.http import json_body

inventory_bp = Blueprint('inventory', __name__, url_prefix='/api/inventory')


@inventory_bp.route('', methods=['GET'])
def list_inventory():
    return jsonify(inventory_service.list_inventory(get_session(), request.args.get('type')))


@inventory_bp.route('/receive', methods=['POST'])
def receive_stock():
    return jsonify(inventory_service.receive_stock(get_session(), json_body()))


@inventory_bp.route('/adjust', methods=['POST'])
def adjust_stock():
    return jsonify(inventory_service.adjust_stock(get_session(), json_body()))


@inventory_bp.route('/<int:inventory_id>/transactions', methods=['GET'])
def inventory_transactions(inventory_id: int):
    return jsonify(inventory_service.list_inventory_transactions(get_session(), inventory_id))
