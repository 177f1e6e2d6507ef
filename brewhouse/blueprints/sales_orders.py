"""Sales orders blueprint (JSON API)."""
from flask import Blueprint, jsonify, current_app
from brewhouse.database import get_session
from brewhouse.exceptions import BrewhouseError
from brewhouse.services import sales_order_service
from brewhouse.blueprints.metrics import (
    sales_orders_created_total, sales_orders_approved_total, sales_order_rejections_total
)
from brewhouse.utils.http import json_body, page_args

sales_orders_bp = Blueprint('sales_orders', __name__, url_prefix='/api/sales-orders')


@sales_orders_bp.route('', methods=['GET'])
def list_orders():
    """List open orders: ?page=&limit= -> {orders, totalPages}."""
    page, limit, max_limit = page_args()
    return jsonify(sales_order_service.list_sales_orders(get_session(), page, limit, max_limit))


@sales_orders_bp.route('/<int:order_id>', methods=['GET'])
def get_order(order_id: int):
    return jsonify(sales_order_service.get_sales_order(get_session(), order_id))


@sales_orders_bp.route('', methods=['POST'])
def create_order():
    """Create a Draft order from {customerId, poNumber?, items[]}."""
    try:
        order = sales_order_service.create_sales_order(get_session(), json_body())
    except BrewhouseError as e:
        sales_order_rejections_total.labels(code=e.kind.value).inc()
        current_app.logger.warning(f"Sales order rejected: {e.message}")
        raise

    sales_orders_created_total.inc()
    return jsonify(order)


@sales_orders_bp.route('/<int:order_id>', methods=['PATCH'])
def update_order(order_id: int):
    """Replace items/header of a Draft order; status "Approved" creates the invoice."""
    try:
        order = sales_order_service.update_sales_order(get_session(), order_id, json_body())
    except BrewhouseError as e:
        sales_order_rejections_total.labels(code=e.kind.value).inc()
        current_app.logger.warning(f"Sales order {order_id} update rejected: {e.message}")
        raise

    if order.get('invoiceId') and order.get('status') == 'Approved':
        sales_orders_approved_total.inc()
    return jsonify(order)
