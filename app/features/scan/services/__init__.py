"""
Scan services, one package per stage of a page audit:

- fetching/: download the page HTML over HTTP
- parsing/: the Document wrapper the analyzers query
- analysis/: heuristic analyzers and CMS detection, each degrading to a neutral result
- external/: Selenium rendering and the Lighthouse CLI
- orchestration/: the step-by-step pipeline and the stale scan sweep
- scan/: create, read and delete scan rows for the API
- utils/: score aggregation and response formatting
"""
