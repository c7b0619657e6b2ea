# estimator/scope_templates/routes.py

from flask import Blueprint, abort, jsonify, request

from estimator import db
from estimator.models import ScopeTemplate
from estimator.schemas import TemplateCreate, TemplateUpdate, dump_updates, validate
from estimator.utils import current_user_id, ok, request_json

bp = Blueprint('scope_templates', __name__)

SORTS = {
    'usageCount': (ScopeTemplate.usage_count.desc(), ScopeTemplate.created_at.desc()),
    'name': (ScopeTemplate.name.asc(),),
    'createdAt': (ScopeTemplate.created_at.desc(), ScopeTemplate.id.desc()),
}


def _template_or_404(template_id):
    tpl = ScopeTemplate.query.filter_by(id=template_id, user_id=current_user_id()).first()
    if tpl is None:
        abort(404)
    return tpl


@bp.route('/', methods=['GET'])
def list_templates():
    """
    ?workType=  only templates tagged with that work type
    ?activeOnly= default true; 'false' includes soft-deleted templates
    ?sortBy=    createdAt (default) | usageCount | name
    """
    work_type   = request.args.get('workType')
    active_only = request.args.get('activeOnly', 'true').lower() != 'false'
    sort_by     = request.args.get('sortBy', 'createdAt')

    q = ScopeTemplate.query.filter_by(user_id=current_user_id())
    if active_only:
        q = q.filter_by(is_active=True)
    templates = q.order_by(*SORTS.get(sort_by, SORTS['createdAt'])).all()
    # work_types is a JSON list, filter it here rather than per-dialect SQL
    if work_type:
        templates = [t for t in templates if work_type in (t.work_types or [])]
    return ok([t.to_dict() for t in templates])


@bp.route('/', methods=['POST'])
def create_template():
    payload = validate(TemplateCreate, request_json())
    tpl = ScopeTemplate(user_id=current_user_id(), **payload.model_dump(mode='json'))
    db.session.add(tpl)
    db.session.commit()
    return ok(tpl.to_dict(), 201)


@bp.route('/<int:template_id>', methods=['GET'])
def get_template(template_id):
    return ok(_template_or_404(template_id).to_dict())


@bp.route('/<int:template_id>', methods=['PATCH'])
def update_template(template_id):
    payload = validate(TemplateUpdate, request_json())
    tpl = _template_or_404(template_id)
    for field, value in dump_updates(payload).items():
        setattr(tpl, field, value)
    db.session.commit()
    return ok(tpl.to_dict())


@bp.route('/<int:template_id>', methods=['DELETE'])
def delete_template(template_id):
    """Soft delete by default; ``?hard=true`` removes the row."""
    tpl = _template_or_404(template_id)
    if request.args.get('hard') == 'true':
        db.session.delete(tpl)
    else:
        tpl.is_active = False
    db.session.commit()
    return ok()


@bp.route('/<int:template_id>/use', methods=['POST'])
def use_template(template_id):
    """Bump the usage counter in a single UPDATE, active templates only."""
    updated = (
        db.session.query(ScopeTemplate)
        .filter_by(id=template_id, user_id=current_user_id(), is_active=True)
        .update(
            {ScopeTemplate.usage_count: ScopeTemplate.usage_count + 1},
            synchronize_session=False,
        )
    )
    db.session.commit()
    if not updated:
        return jsonify(error='Template not found or inactive'), 404
    return ok(db.session.get(ScopeTemplate, template_id).to_dict())
