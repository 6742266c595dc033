"""
Nautichandler catalog: scraping, variant grouping and storage.
"""
