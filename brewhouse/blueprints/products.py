"""Products blueprint (JSON API): products and their priced package types."""
from flask import Blueprint, jsonify, request
from brewhouse.database import get_session
from brewhouse.services import catalog_service
from brewhouse.utils.http import json_body

products_bp = Blueprint('products', __name__, url_prefix='/api/products')


@products_bp.route('', methods=['GET'])
def list_products():
    include_disabled = request.args.get('all') in ('1', 'true')
    return jsonify(catalog_service.list_products(get_session(), include_disabled))


@products_bp.route('', methods=['POST'])
def create_product():
    return jsonify(catalog_service.create_product(get_session(), json_body()))


@products_bp.route('/<int:product_id>/package-types', methods=['POST'])
def save_package_type(product_id: int):
    """Add or reprice a package type: {type, price, isKegDepositItem?}."""
    return jsonify(catalog_service.upsert_package_type(get_session(), product_id, json_body()))
