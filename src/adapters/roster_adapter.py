"""Adapter for loading the name roster that sits beside the photos.

Uses openpyxl to read .xlsx/.xlsm workbooks and the csv module for
.csv exports. Only the "Name" column is read.
"""

import csv
from pathlib import Path

import structlog
from openpyxl import load_workbook

logger = structlog.get_logger()


class RosterUnavailableError(Exception):
    """Raised when no usable roster can be read from a directory."""


class RosterAdapter:
    """Adapter for loading roster names from a spreadsheet.

    Expected file format:
    - File named roster.xlsx / roster.xlsm / roster.csv (any case), or any
      workbook/csv whose name contains "roster"
    - First sheet, header row with a "Name" column
    - Names in "Last, First" form
    """

    PREFERRED_NAMES = ["roster.xlsx", "roster.xlsm", "roster.csv"]
    SUPPORTED_SUFFIXES = (".xlsx", ".xlsm", ".csv")
    NAME_HEADER = "name"

    def find_roster_file(self, directory: Path) -> Path | None:
        """Locate the roster file in a directory.

        Args:
            directory: Images directory

        Returns:
            Path of the roster file, or None if none found
        """
        try:
            children = sorted(p for p in directory.iterdir() if p.is_file())
        except OSError as e:
            logger.warning("Cannot list roster directory", directory=str(directory), error=str(e))
            return None

        by_lower = {p.name.lower(): p for p in children}
        for name in self.PREFERRED_NAMES:
            if name in by_lower:
                return by_lower[name]

        for path in children:
            lower = path.name.lower()
            if "roster" in lower and lower.endswith(self.SUPPORTED_SUFFIXES):
                return path

        for path in children:
            if "roster" in path.name.lower() and path.suffix.lower() == ".xls":
                # Legacy binary workbooks cannot be read by openpyxl
                return path
        return None

    def load_names(self, directory: Path) -> list[str]:
        """Load roster names from the roster file in a directory.

        Args:
            directory: Images directory containing the roster

        Returns:
            Trimmed, non-empty values of the Name column in sheet order

        Raises:
            RosterUnavailableError: If no roster file exists, it cannot be
                read, it has no Name column, or it has no names
        """
        roster_file = self.find_roster_file(Path(directory))
        if roster_file is None:
            raise RosterUnavailableError(
                f"No roster file (roster.xlsx or roster.csv) found in: {directory}"
            )

        suffix = roster_file.suffix.lower()
        if suffix == ".xls":
            raise RosterUnavailableError(
                f"{roster_file.name}: legacy .xls workbooks are not supported. "
                "Save the roster as .xlsx."
            )

        try:
            if suffix == ".csv":
                rows = self._read_csv(roster_file)
            else:
                rows = self._read_workbook(roster_file)
        except RosterUnavailableError:
            raise
        except Exception as e:
            logger.warning("Failed to read roster", path=str(roster_file), error=str(e))
            raise RosterUnavailableError(
                f"Failed to read roster {roster_file.name}: {e}"
            ) from e

        names = self._extract_names(rows, roster_file)
        if not names:
            raise RosterUnavailableError(f"Roster {roster_file.name} has no names")

        logger.info("Loaded roster", path=str(roster_file), count=len(names))
        return names

    def _read_workbook(self, path: Path) -> list[list[object]]:
        workbook = load_workbook(path, read_only=True, data_only=True)
        try:
            sheet = workbook.worksheets[0]
            return [list(row) for row in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()

    def _read_csv(self, path: Path) -> list[list[object]]:
        with path.open(newline="", encoding="utf-8-sig") as f:
            return [list(row) for row in csv.reader(f)]

    def _extract_names(self, rows: list[list[object]], path: Path) -> list[str]:
        """Pull the Name column out of raw rows (header first)."""
        if not rows:
            raise RosterUnavailableError(f"Roster {path.name} is empty")

        header = [self._cell_text(cell).lower() for cell in rows[0]]
        if self.NAME_HEADER not in header:
            raise RosterUnavailableError(
                f"'Name' column not found in roster {path.name}. "
                f"Found columns: {[h for h in header if h]}"
            )
        column = header.index(self.NAME_HEADER)

        names = []
        for row in rows[1:]:
            if column >= len(row):
                continue
            name = self._cell_text(row[column])
            if name:
                names.append(name)
        return names

    @staticmethod
    def _cell_text(cell: object) -> str:
        if cell is None:
            return ""
        return str(cell).strip()
