"""Helpers shared by the JSON blueprints."""
from flask import request, current_app

from fieldsales.exceptions import ValidationError
from fieldsales.services.order_settings import OrderSettings


def json_body():
    """Parsed JSON object of the request, or ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def order_settings() -> OrderSettings:
    return OrderSettings.from_config(current_app.config)


def int_arg(name):
    """Optional integer query-string argument."""
    value = request.args.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f'{name} must be an integer', field=name)
