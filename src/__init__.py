"""
SEO Gap Analyzer

Pay-per-report SEO gap analysis that:
1. Extracts the user's page and competitor pages with Hyperbrowser
2. Detects the page's search ranking for the target keyword
3. Compares the page against competitor benchmarks with Claude
4. Stores a checkpointed report record and renders it as JSON or HTML
"""

__version__ = "1.0.0"
