from __future__ import annotations


class TabifyError(Exception):
    """Base class for failures that abort a table extraction run."""


class DocumentEncrypted(TabifyError):
    pass


class PageRangeInvalid(TabifyError):
    pass


class NoDataFound(TabifyError):
    """Neither a header row nor any data row was found."""

    def __init__(self, message: str = "Unable to find any data in the table. Try a different column count."):
        super().__init__(message)


class NoColumnsFound(NoDataFound):
    """No line split into exactly the declared number of columns."""

    def __init__(self, num_columns: int):
        super().__init__(
            f"Unable to find any line with {num_columns} columns. "
            "Adjust the declared column count or the tolerance."
        )
        self.num_columns = num_columns


class AmbiguousColumnAssignment(TabifyError):
    """A row's tokens cannot be mapped one-to-one onto the column grid.

    Raised and absorbed per row: the row is marked for deletion and the run continues.
    """

    def __init__(self, row_index: int, reason: str):
        super().__init__(f"row {row_index}: {reason}")
        self.row_index = row_index
        self.reason = reason
