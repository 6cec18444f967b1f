"""School Portal package.

This package is organized by feature modules (approvals, attendance, courses, fees, ...)
with a thin Flask controller layer and service/record-store layers.
"""
