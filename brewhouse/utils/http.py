"""Request helpers shared by the JSON blueprints."""
from flask import request, current_app
from brewhouse.exceptions import ValidationError, ErrorKind


def json_body() -> dict:
    """Parsed JSON object of the current request; anything else is a 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError.single(ErrorKind.INVALID_ITEM, 'Request body must be a JSON object')
    return data


def page_args():
    """(page, limit, max_limit) from the query string and app config."""
    return (
        request.args.get('page', 1),
        request.args.get('limit', current_app.config.get('DEFAULT_PAGE_SIZE', 10)),
        current_app.config.get('MAX_PAGE_SIZE', 100),
    )
