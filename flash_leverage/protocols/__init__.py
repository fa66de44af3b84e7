"""Lending pool and swap router adapters."""
