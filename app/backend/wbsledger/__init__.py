"""Time entry and effort ledger backend for WBS project tracking."""
