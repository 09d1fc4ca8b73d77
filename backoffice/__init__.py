"""
Back-office board: customers, projects, tasks and invoices with dashboard
aggregation and legacy ledger CSV import.
"""
