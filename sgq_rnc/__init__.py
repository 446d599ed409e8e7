"""
SGQ–RNC — Non-conformance (RNC) quality dashboard

Analytics backend for turning RNC spreadsheet exports into a normalised,
deduplicated record set, persisted to Firestore with a local-cache fallback.

To import spreadsheets:
    Call loaders.parse_files(paths) to get RNCRecord objects from form-layout
    (one RNC per workbook) or table-layout (one RNC per row) workbooks, then
    hand them to storage.RncStore.ingest().

To connect to Streamlit:
    Call the dashboard.get_*_overview(records) functions to get plain dicts
    and DataFrames for cards, Plotly charts and tables.

To add a sector:
    Append it to config.APPROVED_SECTORS; sector matching is accent- and
    case-insensitive.
"""

__version__ = "1.0.0"
