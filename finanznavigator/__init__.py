"""Finanz-Navigator — household financial self-assessment backend."""
