"""HTTP API for Cryptofolio."""
