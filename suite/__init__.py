"""
Browser test library for the multi-region storefront.

- `suite.regions` / `suite.environments`: region registry and URL resolution
- `suite.pages`: page objects
- `suite.flows`: multi-page journeys (auth, checkout, Printbox, photo products)
- `suite.monitor`: timed navigation monitor
- `suite.progress` / `suite.results` / `suite.reports`: progress file, summaries and HTML reports
- `suite.splitter` / `suite.parallel`: chunked parallel link validation
"""
