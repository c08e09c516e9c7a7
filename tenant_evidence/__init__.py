"""
Tenant incident evidence organizer.

Builds the chronological timeline and the file gallery of a rental-dispute
incident, and renders its PDF case report and AI analysis PDF.
"""

__version__ = "0.1.0"
