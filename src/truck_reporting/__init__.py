"""
Reporting queries for the food truck sales dashboard.

Modules:
    - config: Configuration management (connection settings, sources, filter defaults)
    - db: Engine creation and source relation models
    - queries: Query catalog, parameter binding and execution
    - ingestion: Source diagnostics and CSV extracts
    - transformation: Data quality checks and derived metrics
    - loading: Result export
    - dashboard: Tiles bound to catalog queries
"""
__version__ = "0.1.0"
