"""
Location Services Package

Modules:
    distance  - Haversine distance and walking-time conversion
    registry  - Latest position per participant
    eta       - Runner arrival estimates for packs in transit
"""
