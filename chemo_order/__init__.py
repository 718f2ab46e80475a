"""Chemotherapy drug-order backend."""
