"""
debquery - Package information for Debian/Ubuntu

Answers questions about installed and available packages:
- Packages by section or debtags suite
- Name and fuzzy search, reverse dependencies, package files
- Orphaned auto-installed packages (lite and full scan)
- Installation history by count or date
"""

__version__ = "0.3.0"
__author__ = "debquery contributors"
