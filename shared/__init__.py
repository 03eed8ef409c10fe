"""
Shared utilities for the storefront E2E suite.

This package is intentionally small and focused. It currently provides:

- `shared.config` for environment-based configuration
- `shared.logging` for structlog-based structured logging
- `shared.junit` for reading pytest JUnit XML reports
- `shared.teams` for Microsoft Teams run notifications

The browser suite, the dashboards and the CLI scripts should treat
`shared/` as read-only infrastructure code and avoid introducing
service-specific coupling here.
"""
