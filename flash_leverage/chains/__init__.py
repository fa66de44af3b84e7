"""Chain RPC clients."""
