"""Quorum Vault core - threshold authorization over a shared pool of funds."""
