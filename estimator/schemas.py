"""Request payload validation for the JSON API."""

from datetime import datetime
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Tuple, Type, TypeVar

import pydantic
from pydantic import BaseModel, BeforeValidator, EmailStr, Field, model_validator

from estimator.errors import ValidationError
from estimator.pricing.models import WorkType

EstimateStatus = Literal['draft', 'sent', 'approved', 'rejected']
ProviderName = Literal['openai', 'anthropic']

T = TypeVar('T', bound=BaseModel)

# forms post an empty string for a blank email
OptionalEmail = Annotated[Optional[EmailStr], BeforeValidator(lambda v: v or None)]


def validate(schema: Type[T], payload: Any) -> T:
    """Parse ``payload`` with ``schema`` or raise ``ValidationError`` (400)."""
    try:
        return schema.model_validate(payload if payload is not None else {})
    except pydantic.ValidationError as e:
        details = [
            {'loc': [str(p) for p in err['loc']], 'msg': err['msg']}
            for err in e.errors()
        ]
        raise ValidationError('Validation failed', details=details) from e


class PartialUpdate(BaseModel):
    """PATCH/PUT body where omitted fields are left alone.

    Fields listed in ``NOT_NULL`` back NOT NULL columns, so an explicit
    ``null`` for them is rejected instead of reaching the database.
    """

    NOT_NULL: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode='after')
    def reject_nulls(self):
        nulls = [f for f in self.NOT_NULL if f in self.model_fields_set and getattr(self, f) is None]
        if nulls:
            raise ValueError(f"{', '.join(nulls)} may not be null")
        return self


class MaterialInput(BaseModel):
    description: str = Field(min_length=1, max_length=200)
    quantity: float = Field(default=1, ge=0)
    unit_cost: float = Field(default=0, ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)


class PricingInput(BaseModel):
    labor_hours: float = Field(default=0, ge=0)
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    markup_percentage: Optional[float] = Field(default=None, ge=0)
    materials: List[MaterialInput] = Field(default_factory=list)


class PricingUpdate(BaseModel):
    labor_hours: Optional[float] = Field(default=None, ge=0)
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    markup_percentage: Optional[float] = Field(default=None, ge=0)
    materials: Optional[List[MaterialInput]] = None


class PriceRangePayload(BaseModel):
    min: float = 0
    max: float = 0


class PricingSourcePayload(BaseModel):
    source: str
    price: float
    url: Optional[str] = None
    description: str = ''


class AIPricingPayload(BaseModel):
    average_price: float
    price_range: PriceRangePayload
    sources: List[PricingSourcePayload] = Field(default_factory=list)
    confidence: Literal['low', 'medium', 'high'] = 'low'
    last_updated: datetime
    search_query: str = ''


class EstimateCreate(BaseModel):
    client_name: str = Field(min_length=1, max_length=200)
    client_email: OptionalEmail = None
    client_phone: Optional[str] = None
    project_address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: Optional[str] = Field(default=None, max_length=2)
    work_type: WorkType
    scope_of_work: str = Field(min_length=1)
    pricing: PricingInput = Field(default_factory=PricingInput)
    ai_pricing: Optional[AIPricingPayload] = None
    status: EstimateStatus = 'draft'
    notes: Optional[str] = None


class EstimateUpdate(PartialUpdate):
    NOT_NULL = ('client_name', 'project_address', 'city', 'work_type', 'scope_of_work', 'status')

    client_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    client_email: OptionalEmail = None
    client_phone: Optional[str] = None
    project_address: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    state: Optional[str] = Field(default=None, max_length=2)
    work_type: Optional[WorkType] = None
    scope_of_work: Optional[str] = Field(default=None, min_length=1)
    pricing: Optional[PricingUpdate] = None
    status: Optional[EstimateStatus] = None
    notes: Optional[str] = None


class SyncRequest(BaseModel):
    estimates: List[EstimateCreate]


class TemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    work_types: List[WorkType] = Field(min_length=1)
    scope_text: str = Field(min_length=1, max_length=5000)
    suggested_labor_hours: float = Field(default=8, ge=0)
    materials: List[MaterialInput] = Field(default_factory=list)


class TemplateUpdate(PartialUpdate):
    NOT_NULL = ('name', 'work_types', 'scope_text', 'suggested_labor_hours', 'materials', 'is_active')

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    work_types: Optional[List[WorkType]] = Field(default=None, min_length=1)
    scope_text: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    suggested_labor_hours: Optional[float] = Field(default=None, ge=0)
    materials: Optional[List[MaterialInput]] = None
    is_active: Optional[bool] = None


class SettingsUpdate(PartialUpdate):
    NOT_NULL = (
        'company_name', 'default_hourly_rate', 'default_markup_percentage',
        'preferred_ai_provider', 'theme',
    )

    company_name: Optional[str] = Field(default=None, min_length=1)
    company_email: OptionalEmail = None
    company_phone: Optional[str] = None
    company_address: Optional[str] = None
    default_hourly_rate: Optional[float] = Field(default=None, ge=0)
    default_markup_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    preferred_ai_provider: Optional[ProviderName] = None
    theme: Optional[Literal['dark', 'light']] = None


class AIPricingRequest(BaseModel):
    scope_of_work: str = Field(min_length=1)
    city: str = Field(min_length=1)
    work_type: WorkType
    provider: Optional[ProviderName] = None
    estimate_id: Optional[int] = None
    refresh: bool = False


def dump_updates(model: BaseModel) -> Dict[str, Any]:
    """Only the fields the client actually sent, enums as plain values."""
    return model.model_dump(mode='json', exclude_unset=True)
