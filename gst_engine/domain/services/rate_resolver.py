# gst_engine/domain/services/rate_resolver.py
"""
Effective GST rate resolution as an ordered rule chain.

Resolution order (first match wins):
1. Tax-exempt / zero-rated line      → 0%, EXCLUSIVE
2. Batch sale-rate override
3. Product configured rate
4. HSN master default rate for the effective HSN code
5. Fallback: caller rate override if > 0, else system default (never fails)

Each rule is a small object with ``apply(line, catalog)`` returning a
``RateResolution`` or ``None``. The resolver performs no I/O: the caller
reads product / batch / HSN master rows into a ``RateCatalog`` first.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, Protocol

from gst_engine.config.settings import settings
from gst_engine.domain.models.tax import (
    GstType,
    HsnMasterEntry,
    LineItemInput,
    RateCatalog,
    RateResolution,
    RateResolutionFallback,
    RateSource,
    TaxCategory,
    TaxRate,
    to_rate,
)
from gst_engine.domain.services.hsn_mapping import sanitize_hsn_code, suggest_gst_rate

logger = logging.getLogger("rate_resolver")

_ZERO = Decimal("0")


class RateRule(Protocol):
    def apply(self, line: LineItemInput, catalog: RateCatalog) -> RateResolution | None:
        ...


def effective_hsn_code(line: LineItemInput, catalog: RateCatalog) -> str | None:
    """Line override first, then the product's HSN code."""
    if line.hsn_code_override:
        return line.hsn_code_override.strip() or None
    product = catalog.product_for(line)
    if product is not None and product.hsn_code:
        return product.hsn_code.strip() or None
    return None


def lookup_hsn_master(catalog: RateCatalog, hsn_code: str | None) -> HsnMasterEntry | None:
    if not hsn_code:
        return None
    entry = catalog.hsn_master.get(hsn_code)
    if entry is None:
        entry = catalog.hsn_master.get(sanitize_hsn_code(hsn_code))
    return entry


def positive_override(value) -> Decimal | None:
    """
    Caller rate override if it is above zero, else None (zero, negative and
    non-finite overrides mean "not given"). Overrides above 100 are rejected.
    """
    if value is None:
        return None
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return to_rate(value, "gst_rate_override")
    if not rate.is_finite() or rate <= 0:
        return None
    return to_rate(rate, "gst_rate_override")


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

class ExemptRule:
    def apply(self, line: LineItemInput, catalog: RateCatalog) -> RateResolution | None:
        if not (line.is_tax_exempt or line.tax_category in (TaxCategory.EXEMPT, TaxCategory.ZERO_RATED)):
            return None
        return RateResolution(
            tax_rate=TaxRate(effective_hsn_code(line, catalog), _ZERO, GstType.EXCLUSIVE),
            source=RateSource.EXEMPT,
        )


class BatchOverrideRule:
    def apply(self, line: LineItemInput, catalog: RateCatalog) -> RateResolution | None:
        batch = catalog.batch_for(line)
        if batch is None or batch.sale_gst_rate_override is None:
            return None

        product = catalog.products.get(batch.product_id) if batch.product_id is not None else None
        if product is None:
            product = catalog.product_for(line)
        hsn_code = (product.hsn_code if product else None) or line.hsn_code_override or None
        gst_type = (product.gst_type if product else None) or line.gst_type or GstType.EXCLUSIVE

        return RateResolution(
            tax_rate=TaxRate(hsn_code, to_rate(batch.sale_gst_rate_override, "sale_gst_rate_override"), gst_type),
            source=RateSource.BATCH_OVERRIDE,
        )


class ProductRateRule:
    def apply(self, line: LineItemInput, catalog: RateCatalog) -> RateResolution | None:
        product = catalog.product_for(line)
        if product is None or product.gst_rate is None:
            return None
        return RateResolution(
            tax_rate=TaxRate(
                product.hsn_code or line.hsn_code_override or None,
                to_rate(product.gst_rate, "product.gst_rate"),
                product.gst_type or GstType.EXCLUSIVE,
            ),
            source=RateSource.PRODUCT,
        )


class HsnMasterRule:
    def apply(self, line: LineItemInput, catalog: RateCatalog) -> RateResolution | None:
        hsn_code = effective_hsn_code(line, catalog)
        entry = lookup_hsn_master(catalog, hsn_code)
        if entry is None:
            return None
        return RateResolution(
            tax_rate=TaxRate(
                hsn_code,
                to_rate(entry.default_gst_rate, "hsn_master.default_gst_rate"),
                entry.gst_type or GstType.EXCLUSIVE,
            ),
            source=RateSource.HSN_MASTER,
        )


class FallbackRule:
    """Last resort. Always resolves and flags the line for compliance review."""

    def __init__(self, default_rate: Decimal | None = None, default_gst_type: GstType | None = None) -> None:
        self.default_rate = to_rate(
            default_rate if default_rate is not None else settings.DEFAULT_GST_RATE_PERCENT,
            "DEFAULT_GST_RATE_PERCENT",
        )
        self.default_gst_type = GstType(default_gst_type or settings.DEFAULT_GST_TYPE)

    def apply(self, line: LineItemInput, catalog: RateCatalog) -> RateResolution:
        hsn_code = effective_hsn_code(line, catalog)

        override = positive_override(line.gst_rate_override)
        if override is not None:
            rate, source = override, RateSource.CALLER_OVERRIDE
        else:
            rate, source = self.default_rate, RateSource.SYSTEM_DEFAULT

        warning = RateResolutionFallback(
            hsn_code=hsn_code,
            applied_rate_percent=rate,
            reason="HSN_MISSING" if not hsn_code else "HSN_NOT_IN_MASTER",
            suggested_rate_percent=suggest_gst_rate(hsn_code),
        )
        logger.warning(
            "Rate fallback for product=%s batch=%s: %s",
            line.product_id, line.batch_id, warning.message,
        )
        return RateResolution(
            tax_rate=TaxRate(hsn_code, rate, line.gst_type or self.default_gst_type),
            source=source,
            warnings=(warning,),
        )


def default_rules() -> list[RateRule]:
    return [ExemptRule(), BatchOverrideRule(), ProductRateRule(), HsnMasterRule(), FallbackRule()]


class RateResolver:
    """Tries each rule in order; the first that answers wins."""

    def __init__(self, rules: Iterable[RateRule] | None = None) -> None:
        self.rules: list[RateRule] = list(rules) if rules is not None else default_rules()
        if not self.rules:
            raise ValueError("RateResolver needs at least one rule")

    def resolve(self, line: LineItemInput, catalog: RateCatalog | None = None) -> RateResolution:
        catalog = catalog or RateCatalog()
        for rule in self.rules:
            resolution = rule.apply(line, catalog)
            if resolution is not None:
                logger.debug(
                    "Resolved %s%% %s via %s (hsn=%s)",
                    resolution.tax_rate.rate_percent,
                    resolution.tax_rate.gst_type.value,
                    resolution.source.value,
                    resolution.tax_rate.hsn_code,
                )
                return resolution
        # Custom chains without a FallbackRule still never fail
        return FallbackRule().apply(line, catalog)


def resolve_tax_rate(line: LineItemInput, catalog: RateCatalog | None = None) -> RateResolution:
    """Resolve with the default rule chain."""
    return RateResolver().resolve(line, catalog)
