from .logger import setup_logging
from .hashing import sha256_hash, sha256_file
from .retry import call_with_retry

__all__ = ["setup_logging", "sha256_hash", "sha256_file", "call_with_retry"]
