"""Referral rewards API for a home-appliance retailer."""

__version__ = "1.0.0"
