from __future__ import annotations

import hashlib
import random


def derive_seed(base_seed: int, *, stream: str, purpose: str) -> int:
    payload = f"{base_seed}|{stream}|{purpose}".encode("utf-8")
    digest = hashlib.blake2b(payload, digest_size=8).digest()
    return int.from_bytes(digest, "big")


def make_rng(base_seed: int, *, stream: str, purpose: str) -> random.Random:
    return random.Random(derive_seed(base_seed, stream=stream, purpose=purpose))
