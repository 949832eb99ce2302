# gst_engine/domain/services/invoice_aggregator.py
"""
Invoice totals and the end-to-end invoice computation pipeline.

Totals are plain integer sums of the per-line figures (no intermediate
rounding). The grand total is rounded to the nearest rupee and the
difference is reported as round-off, which can never exceed 50 paise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, Protocol, Sequence

from gst_engine.config.settings import settings
from gst_engine.domain.errors import TaxComputationError, ValidationError
from gst_engine.domain.models.money import Paise, nearest_rupee
from gst_engine.domain.models.tax import (
    InvoiceTotals,
    LineItemInput,
    LineTaxResult,
    PlaceOfSupplyPolicy,
    RateCatalog,
    RateResolutionFallback,
    RateSource,
    SupplyType,
)
from gst_engine.domain.services.line_tax_calculator import compute_line_item
from gst_engine.domain.services.rate_resolver import RateResolver
from gst_engine.domain.services.supply_classifier import determine_place_of_supply

logger = logging.getLogger("invoice_aggregator")


class TaxLine(Protocol):
    """Anything carrying a per-line tax breakdown (invoice or credit-note line)."""

    taxable_value_paise: Paise
    cgst_paise: Paise
    sgst_paise: Paise
    igst_paise: Paise
    total_gst_paise: Paise


def check_line_regime(line: TaxLine, supply_type: SupplyType, index: int = 0) -> None:
    """Raise TaxComputationError if a line breaks the split invariants."""
    if line.cgst_paise + line.sgst_paise + line.igst_paise != line.total_gst_paise:
        raise TaxComputationError(
            f"Line {index}: CGST+SGST+IGST ({line.cgst_paise}+{line.sgst_paise}+{line.igst_paise}) "
            f"!= total GST {line.total_gst_paise}"
        )
    if supply_type == SupplyType.INTRA_STATE and line.igst_paise != 0:
        raise TaxComputationError(f"Line {index}: IGST on an intra-state invoice")
    if supply_type == SupplyType.INTER_STATE and (line.cgst_paise != 0 or line.sgst_paise != 0):
        raise TaxComputationError(f"Line {index}: CGST/SGST on an inter-state invoice")


def aggregate_totals(
    lines: Iterable[TaxLine],
    supply_type: SupplyType,
    apply_round_off: bool = True,
    round_off_limit: int | None = None,
) -> InvoiceTotals:
    supply_type = SupplyType(supply_type)
    limit = settings.ROUND_OFF_LIMIT_PAISE if round_off_limit is None else round_off_limit

    taxable = cgst = sgst = igst = gst = Paise(0)
    for index, line in enumerate(lines):
        check_line_regime(line, supply_type, index)
        taxable += line.taxable_value_paise
        cgst += line.cgst_paise
        sgst += line.sgst_paise
        igst += line.igst_paise
        gst += line.total_gst_paise

    preliminary = taxable + gst
    grand_total = nearest_rupee(preliminary) if apply_round_off else preliminary
    round_off = grand_total - preliminary

    if abs(round_off) > limit:
        logger.error(
            "Round-off %s paise exceeds %s (preliminary=%s); refusing totals",
            int(round_off), limit, int(preliminary),
        )
        raise TaxComputationError(f"Round-off of {int(round_off)} paise exceeds {limit} paise")

    return InvoiceTotals(
        total_taxable_paise=taxable,
        total_cgst_paise=cgst,
        total_sgst_paise=sgst,
        total_igst_paise=igst,
        total_gst_paise=gst,
        round_off_paise=round_off,
        grand_total_paise=grand_total,
    )


@dataclass(frozen=True)
class InvoiceComputation:
    supply_type: SupplyType
    place_of_supply_state_code: str
    lines: tuple[LineTaxResult, ...]
    totals: InvoiceTotals
    rate_sources: tuple[RateSource, ...] = ()
    warnings: tuple[RateResolutionFallback, ...] = ()

    @property
    def needs_compliance_review(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "supply_type": self.supply_type.value,
            "place_of_supply_state_code": self.place_of_supply_state_code,
            "lines": [
                {**line.to_dict(), "rate_source": source.value}
                for line, source in zip(self.lines, self.rate_sources)
            ],
            "totals": self.totals.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
        }


def compute_invoice(
    items: Sequence[LineItemInput],
    seller_state_code: str,
    buyer_state_code: str | None = None,
    catalog: RateCatalog | None = None,
    policy: PlaceOfSupplyPolicy | str | None = None,
    resolver: RateResolver | None = None,
) -> InvoiceComputation:
    """RateResolver → LineTaxCalculator → totals for a whole cart."""
    if not items:
        raise ValidationError("Invoice needs at least one line item", field="line_items")

    place = determine_place_of_supply(
        seller_state_code,
        buyer_state_code,
        policy or settings.DEFAULT_PLACE_OF_SUPPLY_POLICY,
    )
    resolver = resolver or RateResolver()
    catalog = catalog or RateCatalog()

    results: list[LineTaxResult] = []
    sources: list[RateSource] = []
    warnings: list[RateResolutionFallback] = []
    for index, item in enumerate(items):
        try:
            result, resolution = compute_line_item(item, place.supply_type, catalog, resolver)
        except ValidationError as exc:
            raise ValidationError(f"Line {index + 1}: {exc.message}", field=exc.field) from exc
        results.append(result)
        sources.append(resolution.source)
        warnings.extend(replace(w, line_index=index) for w in resolution.warnings)

    totals = aggregate_totals(results, place.supply_type)
    if warnings:
        logger.info("Invoice computed with %d rate fallback(s) flagged for review", len(warnings))

    return InvoiceComputation(
        supply_type=place.supply_type,
        place_of_supply_state_code=place.state_code,
        lines=tuple(results),
        totals=totals,
        rate_sources=tuple(sources),
        warnings=tuple(warnings),
    )
