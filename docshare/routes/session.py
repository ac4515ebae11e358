# docshare/routes/session.py
from flask import Blueprint, request, jsonify

from docshare.errors import DocShareError
from docshare.routes.helpers import bad_request, error_response
from docshare.services.name_session import FlaskSessionStore, NameSession

session_bp = Blueprint('session', __name__, url_prefix='/api/session')


def _state_payload(name_session: NameSession):
    return {
        'state': name_session.state.value,
        'userName': name_session.user_name,
    }


@session_bp.route('/name', methods=['GET'])
def get_name():
    """当前会话的名字状态"""
    return jsonify(_state_payload(NameSession(FlaskSessionStore()))), 200


@session_bp.route('/name', methods=['POST'])
def submit_name():
    """一次性提交名字：NameNotSet -> NameSet"""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return bad_request('Request body must be JSON')

    name_session = NameSession(FlaskSessionStore())
    try:
        name_session.submit_name(payload.get('userName') or '')
    except DocShareError as e:
        return error_response(e)
    return jsonify(_state_payload(name_session)), 200
