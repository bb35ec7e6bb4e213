"""
Business Logic Services for the Part QA Tracker

This package provides:
- Statement compilation and execution against the issue store
- Row dedup and Part Identity grouping
- Workbook ingestion, parts table, metrics and upload history
- Chat assistant over the QA data
"""
