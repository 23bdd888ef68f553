"""Database-facing tax-filing services."""

from tax_filing.services.export_service import TaxFilingExportService
from tax_filing.services.import_service import ImportSummary, RowFailure, TaxFilingImportService

__all__ = ["ImportSummary", "RowFailure", "TaxFilingExportService", "TaxFilingImportService"]
