"""
Title Crawler

Fetches a set of URLs concurrently and reports each page's title within a
fixed time window.
"""

__version__ = "1.0.0"
__author__ = "Alex Nguyen"
__description__ = "A concurrent page title crawler served over HTTP"
