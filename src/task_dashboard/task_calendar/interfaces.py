"""Abstract interfaces for the task calendar."""

from abc import ABC, abstractmethod
from typing import Any


class SheetSource(ABC):
    """Abstract interface for the spreadsheet backend."""

    @abstractmethod
    async def fetch_rows(self, sheet_name: str) -> list[Any]:
        """
        Fetch the table rows of one sheet.

        Row 0 of the returned list is the sheet's header row. Each row is
        a ``{"c": [{"v": value}, ...]}`` object as produced by the
        backend.

        Args:
            sheet_name: Name of the sheet to read

        Returns:
            Raw table rows, header included

        Raises:
            SheetFetchError: If the request fails or returns an error status
            BackendTimeoutError: If the request exceeds its timeout
            PayloadShapeError: If the response is not a readable table
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Release network resources held by the source.
        """
        pass
