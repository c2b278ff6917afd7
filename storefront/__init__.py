"""Storefront catalog backend."""
