"""Listing, annotation, social and deletion endpoints for stored videos."""
