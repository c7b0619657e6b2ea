from flask import Blueprint

from estimator.estimates.utils import price_estimate
from estimator.models import UserSettings
from estimator.schemas import PricingInput, validate
from estimator.utils import current_user_id, ok, request_json

bp = Blueprint('pricing', __name__)


@bp.route('/calculate', methods=['POST'])
def calculate():
    """Price labor + materials + markup without saving anything.

    Missing rate or markup come from the user's settings.
    """
    payload = validate(PricingInput, request_json())
    breakdown = price_estimate(payload.model_dump(), UserSettings.for_user(current_user_id()))
    return ok(breakdown.to_dict())
