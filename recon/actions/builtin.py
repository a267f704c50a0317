from __future__ import annotations

from catalog_purge.query.plan import QueryPlan, SelectItem, quote_identifier

from ..context import RowContext
from ..results import COULD_NOT_RETRIEVE, DeleteFailed, Deleted, NotFound, RowError, RowOutcome
from .base import RowAction, registry

CATALOG_TABLE = "OSCN"
CARD_FIELD = "CardCode"
ITEM_FIELD = "ItemCode"
SUBSTITUTE_FIELD = "Substitute"


def build_lookup_plan(card_literal: str, item_literal: str) -> QueryPlan:
    plan = QueryPlan(
        selects=[SelectItem(expression=quote_identifier(SUBSTITUTE_FIELD))],
        source=quote_identifier(CATALOG_TABLE),
    )
    return plan.with_filter(f"{quote_identifier(CARD_FIELD)} = '{card_literal}'").with_filter(
        f"{quote_identifier(ITEM_FIELD)} = '{item_literal}'"
    )


class CatalogDeleteAction(RowAction):
    """Delete the business-partner catalog entry matching the row's card and item keys."""

    _TYPE = "delete_catalog_entry"

    def _execute(self, context: RowContext) -> RowOutcome:
        sql = build_lookup_plan(context.escape(context.card_key), context.escape(context.item_key)).render()
        records = context.track(context.client.query(context.session, sql))
        try:
            if records is None or records.record_count == 0:
                return NotFound()
            substitute = records.field(SUBSTITUTE_FIELD)
        finally:
            context.release(records)
        handle = context.track(
            context.client.find_catalog_entry(
                context.session,
                str(context.item_key),
                str(context.card_key),
                "" if substitute is None else str(substitute),
            )
        )
        if handle is None:
            return RowError(message=COULD_NOT_RETRIEVE)
        try:
            result = context.client.delete(handle)
            if result != 0:
                code, message = context.client.last_error(context.session)
                return DeleteFailed(code=code or result, message=message)
        finally:
            context.release(handle)
        return Deleted()


registry.register(CatalogDeleteAction)
