import random
import string
import time

_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(prefix: str, source: str) -> str:
    """Opaque row id such as cand-luma-1767225600000-x7k2"""
    suffix = "".join(random.choices(_ALPHABET, k=4))
    return f"{prefix}-{source}-{int(time.time() * 1000)}-{suffix}"
