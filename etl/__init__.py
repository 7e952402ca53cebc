# WORKFLOW: ETL package for fund workbook ingestion.
# Used by: Upload endpoint, bootstrap script, search index builder
# Modules include:
# 1. workbook.py / cells.py - Open XLSX bytes, typed cells, value coercion
# 2. names.py - Scheme-name canonical keys and display cleaning
# 3. layout.py / extract.py - Header detection, column mapping, row extraction
# 4. sheets.py / dedup.py - Sheet selection and cross-sheet deduplication
# 5. reconcile.py - Update-then-insert persistence into funds
# 6. pipeline.py - End-to-end ingest()
# 7. rates.py - Seeding the brokerage_rates table from a rate sheet
#
# ETL flow: XLSX -> Sheets -> Layout -> Rows -> Dedup -> Reconcile -> funds table

"""
ETL package for fund workbook ingestion.
"""
