"""
Wikipedia UI test suites package.

Keeps `wikisuites` importable to support:
  - IDE navigation
  - programmatic runners (e.g., `run_tests.py`)
  - CI/CD module imports

The resilient interaction layer lives in `wikisuites.ui_testing.framework`;
page objects for the web site and the Android app live in
`wikisuites.ui_testing.pages`.
"""
