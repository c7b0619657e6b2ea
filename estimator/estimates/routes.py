# estimator/estimates/routes.py

import logging

from flask import Blueprint, Response

from estimator import db
from estimator.estimates.utils import estimate_or_404, price_estimate, reprice_estimate
from estimator.exports import estimate_pdf, estimates_csv, estimate_workbook, XLSX_MIMETYPE
from estimator.models import Estimate, UserSettings
from estimator.schemas import (
    EstimateCreate,
    EstimateUpdate,
    SyncRequest,
    dump_updates,
    validate,
)
from estimator.utils import current_user_id, ok, request_json

log = logging.getLogger(__name__)

bp = Blueprint('estimates', __name__)


def _new_estimate(user_id, payload: EstimateCreate, settings: UserSettings) -> Estimate:
    data = payload.model_dump(mode='json')
    pricing = price_estimate(data.pop('pricing'), settings)
    return Estimate(user_id=user_id, pricing=pricing.to_dict(), **data)


@bp.route('/', methods=['GET'])
def list_estimates():
    ests = (Estimate.query
            .filter_by(user_id=current_user_id())
            .order_by(Estimate.created_at.desc(), Estimate.id.desc())
            .all())
    return ok([e.to_dict() for e in ests])


@bp.route('/', methods=['POST'])
def create_estimate():
    user_id = current_user_id()
    payload = validate(EstimateCreate, request_json())
    est = _new_estimate(user_id, payload, UserSettings.for_user(user_id))
    db.session.add(est)
    db.session.commit()
    log.info("estimate %s created for %s total=%.2f", est.id, user_id, est.total)
    return ok(est.to_dict(), 201)


@bp.route('/<int:estimate_id>', methods=['GET'])
def get_estimate(estimate_id):
    return ok(estimate_or_404(estimate_id).to_dict())


@bp.route('/<int:estimate_id>', methods=['PATCH'])
def update_estimate(estimate_id):
    payload = validate(EstimateUpdate, request_json())
    est = estimate_or_404(estimate_id)
    changes = dump_updates(payload)

    pricing_changes = changes.pop('pricing', None)
    for field, value in changes.items():
        setattr(est, field, value)
    if pricing_changes:
        est.pricing = reprice_estimate(est, pricing_changes).to_dict()

    db.session.commit()
    return ok(est.to_dict())


@bp.route('/<int:estimate_id>', methods=['DELETE'])
def delete_estimate(estimate_id):
    est = estimate_or_404(estimate_id)
    db.session.delete(est)
    db.session.commit()
    return ok(message='Estimate deleted')


@bp.route('/sync', methods=['POST'])
def sync_estimates():
    """Bulk import estimates saved elsewhere (e.g. an offline client).

    An estimate whose client name and project address already exist for
    this user is skipped rather than duplicated.
    """
    user_id = current_user_id()
    payload = validate(SyncRequest, request_json())
    settings = UserSettings.for_user(user_id)

    results = {'imported': 0, 'skipped': 0, 'errors': []}
    for item in payload.estimates:
        existing = Estimate.query.filter_by(
            user_id=user_id,
            client_name=item.client_name,
            project_address=item.project_address,
        ).first()
        if existing:
            results['skipped'] += 1
            continue
        try:
            db.session.add(_new_estimate(user_id, item, settings))
            db.session.commit()
            results['imported'] += 1
        except Exception as e:
            db.session.rollback()
            log.warning("sync import failed for %s: %s", item.client_name, e)
            results['errors'].append(
                f"Failed to import estimate for {item.client_name}: {e}"
            )
    return ok(**results)


@bp.route('/<int:estimate_id>/export.xlsx')
def export_estimate_xlsx(estimate_id):
    est = estimate_or_404(estimate_id)
    resp = Response(estimate_workbook(est), mimetype=XLSX_MIMETYPE)
    resp.headers['Content-Disposition'] = f'attachment; filename=estimate-{est.id}.xlsx'
    return resp


@bp.route('/<int:estimate_id>/export.pdf')
def export_estimate_pdf(estimate_id):
    est = estimate_or_404(estimate_id)
    pdf = estimate_pdf(est, UserSettings.for_user(current_user_id()))
    resp = Response(pdf, mimetype='application/pdf')
    resp.headers['Content-Disposition'] = f'attachment; filename=estimate-{est.id}.pdf'
    return resp

@bp.route('/export.csv')
def export_estimates_csv():
    """Download all of the user's estimates as a CSV file."""
    ests = (Estimate.query
            .filter_by(user_id=current_user_id())
            .order_by(Estimate.id)
            .all())
    resp = Response(estimates_csv(ests), mimetype='text/csv')
    resp.headers['Content-Disposition'] = 'attachment; filename=estimates.csv'
    return resp
