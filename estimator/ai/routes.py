# estimator/ai/routes.py

import logging
from datetime import timedelta

from flask import Blueprint, current_app

from estimator import db
from estimator.ai.cache import DatabasePricingCache, PricingCache
from estimator.ai.providers import get_provider
from estimator.ai.research import PricingResearcher
from estimator.estimates.utils import estimate_or_404
from estimator.models import UserSettings
from estimator.schemas import AIPricingRequest, validate
from estimator.utils import current_user_id, ok, request_json

log = logging.getLogger(__name__)

bp = Blueprint('ai', __name__)


def pricing_cache() -> PricingCache:
    """The app-wide cache if one was configured, else the database table."""
    cache = current_app.extensions.get('pricing_cache')
    if cache is None:
        cache = DatabasePricingCache(
            db.session, max_age=timedelta(days=current_app.config['AI_CACHE_TTL_DAYS'])
        )
    return cache


@bp.route('/pricing', methods=['POST'])
def research_pricing():
    """
    Look up market pricing for a job.
    Body: { scope_of_work, city, work_type, provider?, estimate_id?, refresh? }
    The provider defaults to the user's preferred one.  With ``estimate_id``
    the result is also attached to that estimate.
    """
    payload = validate(AIPricingRequest, request_json())
    user_id = current_user_id()

    # resolve the estimate first so a bad id costs no provider call
    est = estimate_or_404(payload.estimate_id) if payload.estimate_id else None

    name = payload.provider or UserSettings.for_user(user_id).preferred_ai_provider
    provider = get_provider(name, current_app.config)

    researcher = PricingResearcher(pricing_cache())
    data = researcher.research(
        payload.scope_of_work,
        payload.city,
        payload.work_type,
        provider,
        refresh=payload.refresh,
    )

    if est is not None:
        est.ai_pricing = data.to_dict()
        db.session.commit()
        log.info("ai pricing attached to estimate %s", est.id)

    return ok(data.to_dict())
