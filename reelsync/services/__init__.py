"""Clients for the remote movie catalogs."""
