from .plan import QueryPlan, RecordSet, ResultRow, SelectItem, quote_identifier

__all__ = ["QueryPlan", "RecordSet", "ResultRow", "SelectItem", "quote_identifier"]
