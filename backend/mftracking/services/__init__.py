"""
Mutual Fund Tracking Backend — Services Package
================================================

What:  Business logic (the domain core) between handlers and the store.

Service Inventory:
    - mutual_fund_meta_service.py: MutualFundMetaService and the
      row → record conversion functions
"""
