"""
Reports feature module.

This module provides the read-only reporting layer of the back-office:
aggregated statistics over products, suppliers, users, quotations and
reservations, plus a dashboard overview. Reports are computed fresh on every
request from the underlying collections and never write to them.
"""
