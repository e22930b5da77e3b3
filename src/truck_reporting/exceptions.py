"""
Exceptions raised by the reporting library.
"""


class ReportingError(Exception):
    """Base class for reporting failures."""


class UnknownQueryError(ReportingError, KeyError):
    """The requested query name is not in the catalog."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"Unknown query: {name}")

    def __str__(self):
        return self.args[0]


class QueryReferenceError(ReportingError):
    """A table or column referenced by a query was not found."""

    def __init__(self, query_name, message):
        self.query_name = query_name
        self.message = message
        super().__init__(f"Query '{query_name}' references a missing table or column: {message}")


class QueryExecutionError(ReportingError):
    """The database rejected or failed a query for any other reason."""

    def __init__(self, query_name, message):
        self.query_name = query_name
        self.message = message
        super().__init__(f"Query '{query_name}' failed: {message}")


class EmptyResultError(ReportingError):
    """A query returned no rows where at least one was required."""

    def __init__(self, query_name, params=None):
        self.query_name = query_name
        self.params = params or {}
        super().__init__(f"Query '{query_name}' returned no rows for {self.params}")
