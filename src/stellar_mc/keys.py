"""
Key pair generation.

Writes a new key pair as two files: "<prefix>" holds the seed and
"<prefix>.pub" holds the address.
"""

from dataclasses import dataclass, field
from pathlib import Path

import structlog
from stellar_sdk import Keypair

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class KeyFiles:
    """Paths and address of a generated key pair."""
    seed_path: Path
    public_path: Path
    address: str
    seed: str = field(repr=False)


def generate_keys(prefix: str) -> KeyFiles:
    """
    Generate a new random key pair and store it.

    Args:
        prefix: Path of the seed file; the address goes to "<prefix>.pub"

    Returns:
        The written paths and the new key pair
    """
    keypair = Keypair.random()

    seed_path = Path(prefix)
    public_path = Path(f"{prefix}.pub")

    public_path.write_text(keypair.public_key)
    seed_path.write_text(keypair.secret)

    logger.info(
        "keys_created",
        seed_path=str(seed_path),
        public_path=str(public_path),
        address=keypair.public_key,
    )

    return KeyFiles(
        seed_path=seed_path,
        public_path=public_path,
        address=keypair.public_key,
        seed=keypair.secret,
    )
