"""
HTTP dashboards for the E2E suite.

- `dashboard.main:create_app`: navigation monitor dashboard (start/stop, live progress)
- `dashboard.jobs_main:create_jobs_app`: multi-region auth test jobs server
"""
