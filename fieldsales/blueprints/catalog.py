"""Catalog blueprint - book categories and prices."""
from flask import Blueprint, jsonify

from fieldsales.middleware import require_login
from fieldsales.services import catalog_service

catalog_bp = Blueprint('catalog', __name__, url_prefix='/api/catalog')


@catalog_bp.route('', methods=['GET'])
@require_login
def get_catalog():
    return jsonify({
        'categories': catalog_service.get_categories(),
        'catalog': catalog_service.catalog_as_dict(),
    })
