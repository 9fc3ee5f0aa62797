# =======================================================================================
# valtrack/__init__.py - Package Initialization
# =======================================================================================
"""
ValTrack - Library Patron & Asset Tracking

Branch, floor and area configuration, patron check-in/check-out with
capacity enforcement, baggage lockers, incidents and KYC registration
for the library dashboard and patron app.
"""

__version__ = "1.0.0"
__author__ = "ValTrack Team"
