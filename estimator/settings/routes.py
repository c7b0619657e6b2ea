from flask import Blueprint

from estimator import db
from estimator.models import UserSettings
from estimator.schemas import SettingsUpdate, dump_updates, validate
from estimator.utils import current_user_id, ok, request_json

bp = Blueprint('settings', __name__)


@bp.route('/', methods=['GET'])
def get_settings():
    return ok(UserSettings.for_user(current_user_id()).to_dict())


@bp.route('/', methods=['PUT'])
def update_settings():
    payload = validate(SettingsUpdate, request_json())
    st = UserSettings.for_user(current_user_id())
    for field, value in dump_updates(payload).items():
        setattr(st, field, value)
    db.session.commit()
    return ok(st.to_dict())
