"""Helpers shared by the API blueprints."""

from flask import current_app, jsonify, request

USER_HEADER = 'X-User-Id'


def current_user_id() -> str:
    """Owner of the documents touched by this request.

    Sign-in lives in front of this service; it forwards the user id in a
    header.  Without one, everything belongs to ``DEFAULT_USER_ID``.
    """
    return request.headers.get(USER_HEADER) or current_app.config['DEFAULT_USER_ID']


def ok(data=None, status=200, **extra):
    body = {'success': True}
    if data is not None:
        body['data'] = data
    body.update(extra)
    return jsonify(body), status


def request_json():
    return request.get_json(silent=True) or {}
