"""Showroom: car-dealership storefront and admin console."""

__version__ = "1.0.0"
