"""Value types for priced estimates and AI market research results.

Everything here is immutable and serialises to the plain dicts stored in
the JSON columns of :mod:`estimator.models` and returned by the API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class WorkType(str, Enum):
    RESIDENTIAL_PANEL_UPGRADE = 'residential_panel_upgrade'
    RESIDENTIAL_REWIRING = 'residential_rewiring'
    RESIDENTIAL_OUTLETS = 'residential_outlets'
    SERVICE_CALL = 'service_call'
    REPAIR = 'repair'
    COMMERCIAL_OFFICE = 'commercial_office'
    COMMERCIAL_RETAIL = 'commercial_retail'
    COMMERCIAL_INDUSTRIAL = 'commercial_industrial'

    @property
    def label(self) -> str:
        return self.value.replace('_', ' ')


CONFIDENCE_LEVELS = ('low', 'medium', 'high')


@dataclass(frozen=True)
class LineItem:
    id: str
    description: str
    quantity: float
    unit_cost: float
    total: float
    type: str = 'material'  # 'labor' or 'material'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'description': self.description,
            'quantity': self.quantity,
            'unit_cost': self.unit_cost,
            'total': self.total,
            'type': self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        return cls(
            id=str(data.get('id', '')),
            description=data.get('description', ''),
            quantity=float(data.get('quantity', 0)),
            unit_cost=float(data.get('unit_cost', 0)),
            total=float(data.get('total', 0)),
            type=data.get('type', 'material'),
        )


@dataclass(frozen=True)
class LaborEstimate:
    hours: float
    hourly_rate: float
    total: float
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hours': self.hours,
            'hourly_rate': self.hourly_rate,
            'total': self.total,
            'description': self.description,
        }


@dataclass(frozen=True)
class MaterialEstimate:
    items: Tuple[LineItem, ...]
    subtotal: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'items': [i.to_dict() for i in self.items],
            'subtotal': self.subtotal,
        }


@dataclass(frozen=True)
class PricingBreakdown:
    labor: LaborEstimate
    materials: MaterialEstimate
    subtotal: float
    markup_percentage: float
    markup_amount: float
    total: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'labor': self.labor.to_dict(),
            'materials': self.materials.to_dict(),
            'subtotal': self.subtotal,
            'markup_percentage': self.markup_percentage,
            'markup_amount': self.markup_amount,
            'total': self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PricingBreakdown':
        """Rebuild a breakdown from its stored inputs.

        Only the inputs are read back; totals are recomputed so a stored
        document can never carry derived figures that disagree with them.
        """
        from estimator.pricing.calculator import recalculate_pricing

        labor = data.get('labor') or {}
        items = [LineItem.from_dict(i) for i in (data.get('materials') or {}).get('items', [])]
        return recalculate_pricing(
            float(labor.get('hours', 0)),
            float(labor.get('hourly_rate', 0)),
            items,
            float(data.get('markup_percentage', 0)),
        )


@dataclass(frozen=True)
class PriceRange:
    min: float = 0.0
    max: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {'min': self.min, 'max': self.max}


@dataclass(frozen=True)
class PricingSource:
    source: str
    price: float
    description: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            'source': self.source,
            'price': self.price,
            'description': self.description,
        }
        if self.url:
            out['url'] = self.url
        return out


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class AIPricingData:
    average_price: float
    price_range: PriceRange
    sources: List[PricingSource] = field(default_factory=list)
    confidence: str = 'low'
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    search_query: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'average_price': self.average_price,
            'price_range': self.price_range.to_dict(),
            'sources': [s.to_dict() for s in self.sources],
            'confidence': self.confidence,
            'last_updated': self.last_updated.isoformat(),
            'search_query': self.search_query,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AIPricingData':
        rng = data.get('price_range') or {}
        return cls(
            average_price=float(data.get('average_price', 0)),
            price_range=PriceRange(float(rng.get('min', 0)), float(rng.get('max', 0))),
            sources=[
                PricingSource(
                    source=s.get('source', ''),
                    price=float(s.get('price', 0)),
                    description=s.get('description', ''),
                    url=s.get('url'),
                )
                for s in data.get('sources', [])
            ],
            confidence=data.get('confidence', 'low'),
            last_updated=_parse_timestamp(data['last_updated']),
            search_query=data.get('search_query', ''),
        )
