"""
Report Insights Engine Package.

FastAPI service layer for the content gap and chatbot analytics reports.
Merges structured report rows with raw text records, aggregates them into
timelines and category summaries, and mines ranked insights.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, record store and dependencies
    - models: Pydantic schemas, enums and field normalization
    - services: Correlation, aggregation, insight mining and faceting
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
