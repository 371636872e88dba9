"""
Core cable logic.

This package contains:
- The CableRecord data model
- Header/footer field extraction and body isolation
- Date and diplomatic-text formatting helpers
"""
