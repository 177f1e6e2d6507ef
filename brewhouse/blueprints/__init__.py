"""HTTP blueprints: the JSON API under /api plus /metrics."""


def register_blueprints(app):
    from brewhouse.blueprints.sales_orders import sales_orders_bp
    from brewhouse.blueprints.invoices import invoices_bp
    from brewhouse.blueprints.customers import customers_bp
    from brewhouse.blueprints.products import products_bp
    from brewhouse.blueprints.kegs import kegs_bp
    from brewhouse.blueprints.inventory import inventory_bp
    from brewhouse.blueprints.settings import settings_bp
    from brewhouse.blueprints.metrics import metrics_bp

    app.register_blueprint(sales_orders_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(kegs_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(metrics_bp)
