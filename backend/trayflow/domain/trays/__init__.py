"""Trays bounded context: line item allocation, consolidation and department routing."""
