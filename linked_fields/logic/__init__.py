"""Linked field engine: catalog, collectors and the answer dispatcher."""
