"""Flash-loan leverage engine for a lending pool and swap router."""

__version__ = "0.1.0"
