from app.utils.hashing import generate_hash, hash_identity
from app.utils.validators import validate_local_phone, validate_e164, compose_phone, split_name

__all__ = [
    "generate_hash", "hash_identity",
    "validate_local_phone", "validate_e164", "compose_phone", "split_name",
]
