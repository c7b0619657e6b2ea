from datetime import datetime, timezone

from estimator import db
from estimator.pricing.models import AIPricingData, PricingBreakdown

ESTIMATE_STATUSES = ('draft', 'sent', 'approved', 'rejected')


def utcnow():
    return datetime.now(timezone.utc)


class Estimate(db.Model):
    __tablename__ = 'estimate'
    id              = db.Column(db.Integer, primary_key=True)
    user_id         = db.Column(db.String(64), nullable=False, index=True)
    client_name     = db.Column(db.String(200), nullable=False)
    client_email    = db.Column(db.String(200))
    client_phone    = db.Column(db.String(50))
    project_address = db.Column(db.String(200), nullable=False)
    city            = db.Column(db.String(100), nullable=False)
    state           = db.Column(db.String(2))
    work_type       = db.Column(db.String(50), nullable=False)
    scope_of_work   = db.Column(db.Text, nullable=False)
    pricing         = db.Column(db.JSON, nullable=False)
    ai_pricing      = db.Column(db.JSON, nullable=True)
    status          = db.Column(db.String(32), nullable=False, default='draft')
    notes           = db.Column(db.Text)
    created_at      = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at      = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def breakdown(self) -> PricingBreakdown:
        return PricingBreakdown.from_dict(self.pricing)

    @property
    def ai_research(self):
        return AIPricingData.from_dict(self.ai_pricing) if self.ai_pricing else None

    @property
    def total(self):
        return self.breakdown.total

    def to_dict(self):
        return {
            'id'              : self.id,
            'client_name'     : self.client_name,
            'client_email'    : self.client_email,
            'client_phone'    : self.client_phone,
            'project_address' : self.project_address,
            'city'            : self.city,
            'state'           : self.state,
            'work_type'       : self.work_type,
            'scope_of_work'   : self.scope_of_work,
            'pricing'         : self.pricing,
            'ai_pricing'      : self.ai_pricing,
            'status'          : self.status,
            'notes'           : self.notes,
            'created_at'      : self.created_at.isoformat() if self.created_at else None,
            'updated_at'      : self.updated_at.isoformat() if self.updated_at else None,
        }


class ScopeTemplate(db.Model):
    __tablename__ = 'scope_template'
    id                    = db.Column(db.Integer, primary_key=True)
    user_id               = db.Column(db.String(64), nullable=False, index=True)
    name                  = db.Column(db.String(200), nullable=False)
    description           = db.Column(db.String(500))
    work_types            = db.Column(db.JSON, nullable=False, default=list)
    scope_text            = db.Column(db.Text, nullable=False)
    suggested_labor_hours = db.Column(db.Float, nullable=False, default=8.0)
    materials             = db.Column(db.JSON, nullable=False, default=list)
    is_active             = db.Column(db.Boolean, nullable=False, default=True, index=True)
    usage_count           = db.Column(db.Integer, nullable=False, default=0)
    created_at            = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at            = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id'                    : self.id,
            'name'                  : self.name,
            'description'           : self.description,
            'work_types'            : list(self.work_types or []),
            'scope_text'            : self.scope_text,
            'suggested_labor_hours' : self.suggested_labor_hours,
            'materials'             : list(self.materials or []),
            'is_active'             : self.is_active,
            'usage_count'           : self.usage_count,
            'created_at'            : self.created_at.isoformat() if self.created_at else None,
            'updated_at'            : self.updated_at.isoformat() if self.updated_at else None,
        }


class UserSettings(db.Model):
    __tablename__ = 'user_settings'
    id                        = db.Column(db.Integer, primary_key=True)
    user_id                   = db.Column(db.String(64), unique=True, nullable=False)
    company_name              = db.Column(db.String(200), nullable=False, default='My Electrical Company')
    company_email             = db.Column(db.String(200))
    company_phone             = db.Column(db.String(50))
    company_address           = db.Column(db.String(300))
    default_hourly_rate       = db.Column(db.Float, nullable=False, default=75.0)
    default_markup_percentage = db.Column(db.Float, nullable=False, default=20.0)
    preferred_ai_provider     = db.Column(db.String(20), nullable=False, default='openai')
    theme                     = db.Column(db.String(10), nullable=False, default='dark')

    @classmethod
    def for_user(cls, user_id):
        """Return the user's settings, creating the defaults on first use."""
        st = cls.query.filter_by(user_id=user_id).first()
        if st is None:
            st = cls(
                user_id=user_id,
                company_name='My Electrical Company',
                default_hourly_rate=75.0,
                default_markup_percentage=20.0,
                preferred_ai_provider='openai',
                theme='dark',
            )
            db.session.add(st)
            db.session.commit()
        return st

    def to_dict(self):
        return {
            'company_name'              : self.company_name,
            'company_email'             : self.company_email,
            'company_phone'             : self.company_phone,
            'company_address'           : self.company_address,
            'default_hourly_rate'       : self.default_hourly_rate,
            'default_markup_percentage' : self.default_markup_percentage,
            'preferred_ai_provider'     : self.preferred_ai_provider,
            'theme'                     : self.theme,
        }


class AIPricingCacheEntry(db.Model):
    __tablename__ = 'ai_pricing_cache'
    key          = db.Column(db.String(100), primary_key=True)
    data         = db.Column(db.JSON, nullable=False)
    last_updated = db.Column(db.DateTime, nullable=False, index=True)
