"""One module per scraper. Each exposes a ``run(...)`` returning a RunResult."""
