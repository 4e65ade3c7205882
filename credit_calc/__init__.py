"""Amortization and interest schedules for revolving credit and mortgages."""
