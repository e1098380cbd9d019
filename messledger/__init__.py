"""Period-scoped ledger and balance engine for shared-living groups"""
