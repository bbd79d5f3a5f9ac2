"""Pure domain layer: marketplace records, CRM records and the deal engine."""
