"""Invoices blueprint (JSON API)."""
from flask import Blueprint, jsonify, current_app
from brewhouse.database import get_session
from brewhouse.services import invoice_service
from brewhouse.blueprints.metrics import invoices_posted_total
from brewhouse.utils.http import json_body, page_args

invoices_bp = Blueprint('invoices', __name__, url_prefix='/api/invoices')


@invoices_bp.route('', methods=['GET'])
def list_invoices():
    page, limit, max_limit = page_args()
    return jsonify(invoice_service.list_invoices(get_session(), page, limit, max_limit))


@invoices_bp.route('/<int:invoice_id>', methods=['GET'])
def get_invoice(invoice_id: int):
    return jsonify(invoice_service.get_invoice(get_session(), invoice_id))


@invoices_bp.route('/<int:invoice_id>', methods=['PATCH'])
def update_invoice(invoice_id: int):
    """Replace the items of a Draft invoice: {items: [...]}."""
    data = json_body()
    return jsonify(invoice_service.update_invoice(get_session(), invoice_id, data.get('items')))


@invoices_bp.route('/<int:invoice_id>/post', methods=['POST'])
def post_invoice(invoice_id: int):
    summary = invoice_service.post_invoice(get_session(), invoice_id)
    invoices_posted_total.inc()
    current_app.logger.info(f"Invoice {invoice_id} posted via API")
    return jsonify(summary)


@invoices_bp.route('/<int:invoice_id>/email', methods=['POST'])
def email_invoice(invoice_id: int):
    result = invoice_service.email_invoice(
        get_session(), invoice_id,
        business_name=current_app.config.get('BUSINESS_NAME', 'Brewhouse')
    )
    return jsonify(result)
